"""
Portfolio construction calculators.

Black-Litterman return synthesis and risk-parity optimisation, both built
on the shared decimal kernel in corpfin.core.math.
"""

from corpfin.portfolio.black_litterman import (
    BlackLittermanConfig,
    BlackLittermanSynthesizer,
    synthesize_portfolio,
    validate_black_litterman_input,
)
from corpfin.portfolio.risk_parity import (
    RiskParityConfig,
    RiskParityOptimizer,
    equal_risk_contribution_weights,
    inverse_volatility_weights,
    min_variance_weights,
    optimize_risk_parity,
    validate_risk_parity_input,
)

__all__ = [
    # Black-Litterman
    "BlackLittermanConfig",
    "BlackLittermanSynthesizer",
    "synthesize_portfolio",
    "validate_black_litterman_input",
    # Risk Parity
    "RiskParityConfig",
    "RiskParityOptimizer",
    "equal_risk_contribution_weights",
    "inverse_volatility_weights",
    "min_variance_weights",
    "optimize_risk_parity",
    "validate_risk_parity_input",
]

"""
Domain models and value objects.

Contains the boundary models of the portfolio calculators (assets, views,
inputs and outputs), the validated CovarianceMatrix and the
ComputationOutput envelope.
"""

from corpfin.core.domain.assets import (
    AssetAllocation,
    AssetInfo,
    AssetReturn,
    AssetWeight,
    validate_unique_names,
)
from corpfin.core.domain.black_litterman import (
    BlackLittermanInput,
    BlackLittermanOutput,
    ReturnComparison,
)
from corpfin.core.domain.computation import (
    ComputationMetadata,
    ComputationOutput,
    with_metadata,
)
from corpfin.core.domain.covariance import CovarianceMatrix
from corpfin.core.domain.risk_parity import (
    RiskContribution,
    RiskParityInput,
    RiskParityMethod,
    RiskParityOutput,
)
from corpfin.core.domain.view import View, ViewType

__all__ = [
    # Assets
    "AssetAllocation",
    "AssetInfo",
    "AssetReturn",
    "AssetWeight",
    "validate_unique_names",
    # Views
    "View",
    "ViewType",
    # Black-Litterman
    "BlackLittermanInput",
    "BlackLittermanOutput",
    "ReturnComparison",
    # Risk Parity
    "RiskContribution",
    "RiskParityInput",
    "RiskParityMethod",
    "RiskParityOutput",
    # Covariance
    "CovarianceMatrix",
    # Envelope
    "ComputationMetadata",
    "ComputationOutput",
    "with_metadata",
]

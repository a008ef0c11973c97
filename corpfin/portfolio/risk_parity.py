"""
Risk Parity — Распределение весов по вкладу в риск

Методы (взаимоисключающие, выбираются вызывающим кодом):
- Inverse-Volatility: w_i = (1/σ_i) / Σ(1/σ_j), корреляции игнорируются
- Equal-Risk-Contribution: 20 итераций мультипликативной коррекции от
  inverse-volatility весов; сходимость не гарантируется
- Min-Variance: w = Σ⁻¹·1 / (1ᵗΣ⁻¹1)

Post-processing (все методы):
1. Масштабирование к target_volatility (если задана и σ_p != 0)
2. σ_p, E[R_p], Sharpe, diversification ratio, effective number of assets
3. Вклады в риск: marginal = (Σw)_i/σ_p, contribution = w_i·marginal,
   pct = contribution/σ_p
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Final, Mapping, Sequence

from corpfin.core.domain.assets import AssetAllocation, AssetInfo, validate_unique_names
from corpfin.core.domain.computation import ComputationOutput, with_metadata
from corpfin.core.domain.covariance import CovarianceMatrix
from corpfin.core.domain.risk_parity import (
    RiskContribution,
    RiskParityInput,
    RiskParityMethod,
    RiskParityOutput,
)
from corpfin.core.errors import DivisionByZeroError, InsufficientDataError, InvalidInputError
from corpfin.core.math.decimal_math import sqrt
from corpfin.core.math.linear_solver import invert
from corpfin.core.math.matrix import dot, vector_sum
from corpfin.core.math.numerical_safeguards import (
    ONE,
    ZERO,
    kernel_context,
    safe_divide,
    validate_positive,
)
from corpfin.logging import get_calculator_logger


# =============================================================================
# CONSTANTS
# =============================================================================

ERC_ITERATIONS: Final[int] = 20

_HUNDRED: Final[Decimal] = Decimal(100)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class RiskParityConfig:
    """Конфигурация risk parity оптимизатора."""

    erc_iterations: int = ERC_ITERATIONS
    # Вес актива выше порога → "Concentrated position"
    concentration_threshold: Decimal = Decimal("0.50")
    # Effective number of assets ниже порога (при N > 1) → "Low diversification"
    min_effective_assets: Decimal = Decimal(2)


# =============================================================================
# VALIDATION
# =============================================================================


def validate_risk_parity_input(data: RiskParityInput) -> CovarianceMatrix:
    """
    Валидация входа risk parity.

    Raises:
        InsufficientDataError: Пустой список активов
        InvalidInputError: Ковариация не N×N / не симметрична, волатильность <= 0,
            повтор имени актива, target_volatility <= 0
    """
    n = len(data.assets)
    if n == 0:
        raise InsufficientDataError("At least one asset required")

    sigma = CovarianceMatrix.from_rows(data.covariance_matrix, expected_size=n)

    for i, asset in enumerate(data.assets):
        if asset.volatility <= ZERO:
            raise InvalidInputError(f"assets[{i}].volatility", "Volatility must be positive")

    validate_unique_names((a.name for a in data.assets), "assets")

    if data.target_volatility is not None:
        validate_positive(data.target_volatility, "target_volatility")

    return sigma


# =============================================================================
# WEIGHT METHODS
# =============================================================================


def inverse_volatility_weights(assets: Sequence[AssetInfo]) -> tuple[Decimal, ...]:
    """w_i = (1/σ_i) / Σ(1/σ_j)"""
    with kernel_context():
        inv_vols = [ONE / a.volatility for a in assets]
        total = vector_sum(inv_vols)
        return tuple(iv / total for iv in inv_vols)


def equal_risk_contribution_weights(
    assets: Sequence[AssetInfo],
    sigma: CovarianceMatrix,
    iterations: int = ERC_ITERATIONS,
) -> tuple[Decimal, ...]:
    """
    Equal Risk Contribution: фиксированное число мультипликативных коррекций.

    На каждой итерации RC_i = w_i·(Σw)_i / (wᵗΣw), вес умножается на
    (1/N)/RC_i (только для RC_i > 0), затем вектор нормируется к сумме 1.
    Цикл прерывается досрочно только при нулевой дисперсии портфеля.

    Args:
        assets: Активы (для стартовых inverse-volatility весов)
        sigma: Ковариационная матрица
        iterations: Число итераций (default: 20)

    Returns:
        Веса после последней итерации (равенство вкладов не гарантируется)
    """
    weights = list(inverse_volatility_weights(assets))
    with kernel_context():
        target_rc = ONE / Decimal(len(assets))

        for _ in range(iterations):
            port_var = sigma.variance(weights)
            if port_var.is_zero():
                break

            sigma_w = sigma.mat_vec(weights)
            rcs = [w * sw / port_var for w, sw in zip(weights, sigma_w)]

            for i, rc in enumerate(rcs):
                if rc > ZERO:
                    weights[i] *= target_rc / rc

            total = vector_sum(weights)
            if not total.is_zero():
                weights = [w / total for w in weights]

    return tuple(weights)


def min_variance_weights(sigma: CovarianceMatrix) -> tuple[Decimal, ...]:
    """
    Minimum-variance: w = Σ⁻¹·1 / (1ᵗΣ⁻¹1).

    Raises:
        SingularMatrixError: Σ вырождена
        DivisionByZeroError: 1ᵗΣ⁻¹1 == 0
    """
    inv_ones = invert(sigma).mat_vec([ONE] * sigma.size)
    denom = vector_sum(inv_ones)
    if denom.is_zero():
        raise DivisionByZeroError("min_variance_weights denominator (1' Sigma^-1 1)")
    with kernel_context():
        return tuple(v / denom for v in inv_ones)


# =============================================================================
# OPTIMIZER
# =============================================================================


class RiskParityOptimizer:
    """Risk parity оптимизатор: веса по выбранному методу + метрики риска."""

    def __init__(self, config: RiskParityConfig | None = None):
        self.config = config or RiskParityConfig()
        self._logger = get_calculator_logger(__name__, "risk_parity")

    def optimize(self, data: RiskParityInput) -> ComputationOutput[RiskParityOutput]:
        """
        Расчёт весов и метрик риска портфеля.

        Args:
            data: Вход risk parity

        Returns:
            ComputationOutput[RiskParityOutput]

        Raises:
            InsufficientDataError, InvalidInputError: Ошибка валидации
            SingularMatrixError: Σ вырождена (min_variance)
            DivisionByZeroError: 1ᵗΣ⁻¹1 == 0 (min_variance)
        """
        start = time.perf_counter_ns()
        sigma = validate_risk_parity_input(data)
        assets = data.assets
        n = len(assets)

        weights = self._raw_weights(data.method, assets, sigma)

        with kernel_context():
            if data.target_volatility is not None:
                achieved = sqrt(sigma.variance(weights))
                if not achieved.is_zero():
                    scale = data.target_volatility / achieved
                    weights = tuple(w * scale for w in weights)

            port_vol = sqrt(sigma.variance(weights))
            port_ret = dot(weights, [a.expected_return for a in assets])
            rf = data.risk_free_rate if data.risk_free_rate is not None else ZERO
            sharpe = safe_divide(port_ret - rf, port_vol)

            weighted_avg_vol = dot(weights, [a.volatility for a in assets])
            diversification_ratio = safe_divide(weighted_avg_vol, port_vol, fallback=ONE)

            hhi = vector_sum(w * w for w in weights)
            effective_num_assets = safe_divide(ONE, hhi)

            sigma_w = sigma.mat_vec(weights)
            contributions = []
            for asset, w, sw in zip(assets, weights, sigma_w):
                marginal = safe_divide(sw, port_vol)
                rc = w * marginal
                contributions.append(
                    RiskContribution(
                        name=asset.name,
                        marginal_risk=marginal,
                        risk_contribution=rc,
                        risk_pct=safe_divide(rc, port_vol),
                    )
                )

        allocations = [AssetAllocation(name=a.name, weight=w) for a, w in zip(assets, weights)]
        warnings = self._collect_warnings(allocations, effective_num_assets, n)

        result = RiskParityOutput(
            weights=allocations,
            risk_contributions=contributions,
            portfolio_volatility=port_vol,
            portfolio_expected_return=port_ret,
            portfolio_sharpe=sharpe,
            diversification_ratio=diversification_ratio,
            effective_num_assets=effective_num_assets,
        )

        elapsed_us = (time.perf_counter_ns() - start) // 1000
        self._logger.debug(
            "risk_parity_completed",
            method=data.method.value,
            n_assets=n,
            n_warnings=len(warnings),
            elapsed_us=elapsed_us,
        )

        return with_metadata(
            f"Risk Parity ({data.method.label})",
            {
                "num_assets": n,
                "method": data.method.label,
                "target_volatility": (
                    str(data.target_volatility) if data.target_volatility is not None else None
                ),
            },
            warnings,
            elapsed_us,
            result,
        )

    def _raw_weights(
        self,
        method: RiskParityMethod,
        assets: Sequence[AssetInfo],
        sigma: CovarianceMatrix,
    ) -> tuple[Decimal, ...]:
        if method is RiskParityMethod.INVERSE_VOLATILITY:
            return inverse_volatility_weights(assets)
        if method is RiskParityMethod.EQUAL_RISK_CONTRIBUTION:
            return equal_risk_contribution_weights(assets, sigma, self.config.erc_iterations)
        return min_variance_weights(sigma)

    def _collect_warnings(
        self,
        allocations: list[AssetAllocation],
        effective_num_assets: Decimal,
        n: int,
    ) -> list[str]:
        warnings: list[str] = []
        for alloc in allocations:
            if alloc.weight > self.config.concentration_threshold:
                warnings.append(
                    f"Concentrated position: {alloc.name} has weight "
                    f"{alloc.weight * _HUNDRED:.2f}%"
                )
        if effective_num_assets < self.config.min_effective_assets and n > 1:
            warnings.append(
                "Low diversification: effective number of assets is "
                f"{effective_num_assets:.2f}"
            )

        for message in warnings:
            self._logger.warning("risk_parity_advisory", message=message)
        return warnings


# =============================================================================
# PUBLIC API
# =============================================================================


def optimize_risk_parity(
    data: RiskParityInput | Mapping[str, Any],
    config: RiskParityConfig | None = None,
) -> ComputationOutput[RiskParityOutput]:
    """
    Risk parity оптимизация.

    Args:
        data: RiskParityInput или mapping с теми же полями
        config: конфигурация (опционально)

    Returns:
        ComputationOutput[RiskParityOutput]
    """
    if not isinstance(data, RiskParityInput):
        data = RiskParityInput.model_validate(data)
    return RiskParityOptimizer(config).optimize(data)

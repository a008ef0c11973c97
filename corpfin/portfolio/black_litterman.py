"""
Black-Litterman — Синтез ожидаемых доходностей и оптимальных весов

Комбинирует равновесные доходности рынка (prior) с субъективными взглядами
инвестора, взвешивая их по точности (precision-weighted blend).

АЛГОРИТМ:
1. Π = δ·Σ·w_mkt (обратная mean-variance оптимизация)
2. Без взглядов: E[R] = Π и w* = w_mkt (точное равенство, без матричных операций)
3. Pick-матрица P (K×N) и вектор взглядов Q (K)
4. Ω_ii = max(1/c_i - 1, omega_floor)·(P·τΣ·Pᵗ)_ii
5. E[R] = [(τΣ)⁻¹ + PᵗΩ⁻¹P]⁻¹ · [(τΣ)⁻¹Π + PᵗΩ⁻¹Q]
6. w* = (δΣ)⁻¹·E[R], нормировка к Σw* = 1 (если сырая сумма != 0)
7. E[R_p] = w*·E[R], σ_p = sqrt(w*ᵗΣw*), Sharpe = (E[R_p] - r_f)/σ_p

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Вся валидация выполняется до любой матричной работы
2. Ошибка валидации прерывает расчёт целиком, частичного результата нет
3. Предупреждения (концентрация, шорт, высокая волатильность) не являются ошибками
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Final, Mapping

from corpfin.core.domain.assets import AssetReturn, AssetWeight, validate_unique_names
from corpfin.core.domain.black_litterman import (
    BlackLittermanInput,
    BlackLittermanOutput,
    ReturnComparison,
)
from corpfin.core.domain.computation import ComputationOutput, with_metadata
from corpfin.core.domain.covariance import CovarianceMatrix
from corpfin.core.errors import InsufficientDataError, InvalidInputError
from corpfin.core.math.decimal_math import sqrt
from corpfin.core.math.linear_solver import invert
from corpfin.core.math.matrix import Matrix, dot, vector_sum
from corpfin.core.math.numerical_safeguards import (
    ONE,
    WEIGHT_SUM_TOLERANCE,
    ZERO,
    is_close,
    kernel_context,
    safe_divide,
    validate_in_range,
)
from corpfin.logging import get_calculator_logger


# =============================================================================
# CONSTANTS
# =============================================================================

METHODOLOGY: Final[str] = "Black-Litterman Portfolio Optimisation"

# Нижняя граница множителя (1/c - 1): при confidence = 1 он равен 0 и Ω вырождена
OMEGA_FLOOR: Final[Decimal] = Decimal("1e-8")


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class BlackLittermanConfig:
    """Конфигурация Black-Litterman синтезатора.

    Пороги предупреждений и нижняя граница неопределённости взгляда.
    """

    # Вес актива выше порога → "Concentrated position"
    concentration_threshold: Decimal = Decimal("0.4")
    # Вес актива ниже порога → "Short position"
    short_threshold: Decimal = Decimal("-0.1")
    # Волатильность портфеля выше порога → "High portfolio volatility"
    high_volatility_threshold: Decimal = Decimal("0.3")
    omega_floor: Decimal = OMEGA_FLOOR


# =============================================================================
# VALIDATION
# =============================================================================


def validate_black_litterman_input(data: BlackLittermanInput) -> CovarianceMatrix:
    """
    Валидация входа Black-Litterman (fail fast, до матричной работы).

    Порядок проверок:
    1. Хотя бы один актив
    2. tau > 0, risk_aversion > 0
    3. Ковариация N×N и симметрична
    4. Сумма рыночных весов ≈ 1 (±0.01)
    5. Имена активов уникальны
    6. Для каждого взгляда: confidence ∈ (0, 1], длины assets/asset_weights
       совпадают, все активы известны

    Args:
        data: Вход Black-Litterman

    Returns:
        Проверенная CovarianceMatrix

    Raises:
        InsufficientDataError: Пустой список активов
        InvalidInputError: Любое нарушение формы, диапазона или ссылки
    """
    n = len(data.market_cap_weights)
    if n == 0:
        raise InsufficientDataError("At least one asset required", field="market_cap_weights")

    if data.tau <= ZERO:
        raise InvalidInputError("tau", "tau must be positive")
    if data.risk_aversion <= ZERO:
        raise InvalidInputError("risk_aversion", "risk_aversion must be positive")

    sigma = CovarianceMatrix.from_rows(data.covariance_matrix, expected_size=n)

    weight_sum = vector_sum(a.weight for a in data.market_cap_weights)
    if not is_close(weight_sum, ONE, abs_tol=WEIGHT_SUM_TOLERANCE):
        raise InvalidInputError(
            "market_cap_weights", f"Weights must sum to 1.0 (got {weight_sum})"
        )

    validate_unique_names((a.name for a in data.market_cap_weights), "market_cap_weights")

    names = {a.name for a in data.market_cap_weights}
    for vi, view in enumerate(data.views):
        validate_in_range(
            view.confidence,
            f"views[{vi}].confidence",
            min_value=ZERO,
            max_value=ONE,
            min_inclusive=False,
        )
        if len(view.assets) != len(view.asset_weights):
            raise InvalidInputError(
                f"views[{vi}]", "assets and asset_weights must have the same length"
            )
        for asset_name in view.assets:
            if asset_name not in names:
                raise InvalidInputError(
                    f"views[{vi}].assets", f"Unknown asset '{asset_name}'"
                )

    return sigma


# =============================================================================
# SYNTHESIZER
# =============================================================================


class BlackLittermanSynthesizer:
    """Black-Litterman: равновесные доходности + взгляды → posterior и веса.

    Экземпляр не хранит состояния между вызовами; один синтезатор можно
    использовать из нескольких потоков.
    """

    def __init__(self, config: BlackLittermanConfig | None = None):
        """
        Args:
            config: конфигурация (опционально, используется default)
        """
        self.config = config or BlackLittermanConfig()
        self._logger = get_calculator_logger(__name__, "black_litterman")

    def synthesize(self, data: BlackLittermanInput) -> ComputationOutput[BlackLittermanOutput]:
        """
        Расчёт posterior доходностей и оптимальных весов.

        Args:
            data: Вход Black-Litterman

        Returns:
            ComputationOutput[BlackLittermanOutput]

        Raises:
            InsufficientDataError, InvalidInputError: Ошибка валидации
            SingularMatrixError: τΣ, δΣ или матрица точности вырождены
        """
        start = time.perf_counter_ns()
        sigma = validate_black_litterman_input(data)

        names = [a.name for a in data.market_cap_weights]
        w_mkt = tuple(a.weight for a in data.market_cap_weights)

        with kernel_context():
            pi = tuple(data.risk_aversion * v for v in sigma.mat_vec(w_mkt))

            if data.views:
                posterior = self._posterior_returns(sigma, pi, data, names)
                optimal = self._optimal_weights(sigma, posterior, data.risk_aversion)
            else:
                posterior = pi
                optimal = w_mkt

            expected_return = dot(optimal, posterior)
            volatility = sqrt(sigma.variance(optimal))
            sharpe = safe_divide(expected_return - data.risk_free_rate, volatility)
            shifts = [post - prior for prior, post in zip(pi, posterior)]

        optimal_weights = [AssetWeight(name=n, weight=w) for n, w in zip(names, optimal)]
        warnings = self._collect_warnings(optimal_weights, volatility)

        result = BlackLittermanOutput(
            equilibrium_returns=[
                AssetReturn(name=n, expected_return=r) for n, r in zip(names, pi)
            ],
            posterior_returns=[
                AssetReturn(name=n, expected_return=r) for n, r in zip(names, posterior)
            ],
            optimal_weights=optimal_weights,
            prior_vs_posterior=[
                ReturnComparison(name=n, prior_return=prior, posterior_return=post, shift=s)
                for n, prior, post, s in zip(names, pi, posterior, shifts)
            ],
            portfolio_expected_return=expected_return,
            portfolio_volatility=volatility,
            portfolio_sharpe=sharpe,
        )

        elapsed_us = (time.perf_counter_ns() - start) // 1000
        self._logger.debug(
            "black_litterman_completed",
            n_assets=len(names),
            n_views=len(data.views),
            n_warnings=len(warnings),
            elapsed_us=elapsed_us,
        )

        return with_metadata(
            METHODOLOGY,
            {
                "n_assets": len(names),
                "n_views": len(data.views),
                "risk_aversion": str(data.risk_aversion),
                "tau": str(data.tau),
                "risk_free_rate": str(data.risk_free_rate),
            },
            warnings,
            elapsed_us,
            result,
        )

    def _posterior_returns(
        self,
        sigma: CovarianceMatrix,
        pi: tuple[Decimal, ...],
        data: BlackLittermanInput,
        names: list[str],
    ) -> tuple[Decimal, ...]:
        """E[R] = [(τΣ)⁻¹ + PᵗΩ⁻¹P]⁻¹ · [(τΣ)⁻¹Π + PᵗΩ⁻¹Q]"""
        n = len(names)
        index = {name: i for i, name in enumerate(names)}

        pick_rows = []
        q = []
        for view in data.views:
            row = [ZERO] * n
            for asset_name, weight in zip(view.assets, view.asset_weights):
                row[index[asset_name]] = weight
            pick_rows.append(row)
            q.append(view.expected_return)

        p = Matrix(pick_rows)
        p_t = p.T
        tau_sigma = sigma.scale(data.tau)
        tau_sigma_inv = invert(tau_sigma)

        # Неопределённость взгляда пропорциональна дисперсии его портфеля под τΣ
        view_variance = (p @ tau_sigma @ p_t).diagonal()
        omega_inv = Matrix.diag(
            [
                ONE / self._view_uncertainty(view.confidence, var)
                for view, var in zip(data.views, view_variance)
            ]
        )

        pt_omega_inv = p_t @ omega_inv
        precision = tau_sigma_inv + pt_omega_inv @ p

        prior_term = tau_sigma_inv.mat_vec(pi)
        view_term = pt_omega_inv.mat_vec(q)
        rhs = [a + b for a, b in zip(prior_term, view_term)]

        return invert(precision).mat_vec(rhs)

    def _view_uncertainty(self, confidence: Decimal, view_variance: Decimal) -> Decimal:
        """
        Ω_ii = max(1/c - 1, omega_floor) · (P·τΣ·Pᵗ)_ii

        Нижняя граница относительна дисперсии взгляда и срабатывает только
        при c → 1, так что на любом масштабе Σ смещение строго растёт с c.
        Нулевая дисперсия взгляда (нулевая строка P) заменяется на omega_floor.
        """
        omega = max(ONE / confidence - ONE, self.config.omega_floor) * view_variance
        if omega <= ZERO:
            return self.config.omega_floor
        return omega

    @staticmethod
    def _optimal_weights(
        sigma: CovarianceMatrix,
        posterior: tuple[Decimal, ...],
        risk_aversion: Decimal,
    ) -> tuple[Decimal, ...]:
        """w* = (δΣ)⁻¹·E[R], нормированные к сумме 1."""
        raw = invert(sigma.scale(risk_aversion)).mat_vec(posterior)
        total = vector_sum(raw)
        if total.is_zero():
            return raw
        return tuple(w / total for w in raw)

    def _collect_warnings(self, weights: list[AssetWeight], volatility: Decimal) -> list[str]:
        warnings: list[str] = []
        for w in weights:
            if w.weight > self.config.concentration_threshold:
                warnings.append(f"Concentrated position: {w.name} has weight {w.weight:.4f}")
            if w.weight < self.config.short_threshold:
                warnings.append(f"Short position: {w.name} has weight {w.weight:.4f}")
        if volatility > self.config.high_volatility_threshold:
            warnings.append(f"High portfolio volatility: {volatility:.4f}")

        for message in warnings:
            self._logger.warning("black_litterman_advisory", message=message)
        return warnings


# =============================================================================
# PUBLIC API
# =============================================================================


def synthesize_portfolio(
    data: BlackLittermanInput | Mapping[str, Any],
    config: BlackLittermanConfig | None = None,
) -> ComputationOutput[BlackLittermanOutput]:
    """
    Black-Litterman синтез портфеля.

    Args:
        data: BlackLittermanInput или mapping с теми же полями
        config: конфигурация (опционально)

    Returns:
        ComputationOutput[BlackLittermanOutput]

    Examples:
        >>> out = synthesize_portfolio({
        ...     "market_cap_weights": [{"name": "A", "weight": "0.6"}, {"name": "B", "weight": "0.4"}],
        ...     "covariance_matrix": [["0.04", "0.006"], ["0.006", "0.09"]],
        ...     "risk_aversion": "2.5",
        ...     "tau": "0.05",
        ... })
        >>> [r.expected_return == v for r, v in zip(out.result.equilibrium_returns, [Decimal("0.066"), Decimal("0.099")])]
        [True, True]
    """
    if not isinstance(data, BlackLittermanInput):
        data = BlackLittermanInput.model_validate(data)
    return BlackLittermanSynthesizer(config).synthesize(data)

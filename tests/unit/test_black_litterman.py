"""
Тесты для Black-Litterman синтезатора

Проверяет:
1. Вырождение без взглядов (точное равенство prior/posterior и весов)
2. Известные равновесные доходности
3. Смещение posterior к абсолютным и относительным взглядам
4. Монотонность смещения по confidence
5. Нормировку оптимальных весов
6. Предупреждения (концентрация, шорт, высокая волатильность)
7. Порядок и содержание ошибок валидации
8. Конверт ComputationOutput
"""

from decimal import Decimal, localcontext

import pytest

from corpfin.core.domain import BlackLittermanInput, View, ViewType
from corpfin.core.errors import (
    InsufficientDataError,
    InvalidInputError,
    SingularMatrixError,
)
from corpfin.core.math import sqrt
from corpfin.portfolio.black_litterman import (
    METHODOLOGY,
    BlackLittermanConfig,
    BlackLittermanSynthesizer,
    synthesize_portfolio,
)

TOL = Decimal("1e-12")


def _input(views: list[View] | None = None, **overrides) -> BlackLittermanInput:
    payload = {
        "market_cap_weights": [{"name": "A", "weight": "0.6"}, {"name": "B", "weight": "0.4"}],
        "covariance_matrix": [["0.04", "0.006"], ["0.006", "0.09"]],
        "risk_aversion": "2.5",
        "tau": "0.05",
        "views": views or [],
    }
    payload.update(overrides)
    return BlackLittermanInput.model_validate(payload)


def _absolute(asset: str, expected: str, confidence: str) -> View:
    return View(
        view_type=ViewType.ABSOLUTE,
        assets=[asset],
        asset_weights=[Decimal(1)],
        expected_return=Decimal(expected),
        confidence=Decimal(confidence),
    )


def _relative(long: str, short: str, spread: str, confidence: str) -> View:
    return View(
        view_type=ViewType.RELATIVE,
        assets=[long, short],
        asset_weights=[Decimal(1), Decimal(-1)],
        expected_return=Decimal(spread),
        confidence=Decimal(confidence),
    )


def _posterior(out, name: str) -> Decimal:
    return next(r.expected_return for r in out.result.posterior_returns if r.name == name)


# =============================================================================
# EQUILIBRIUM / NO VIEWS
# =============================================================================


class TestNoViews:
    """Без взглядов модель вырождается в рыночное равновесие"""

    def test_equilibrium_returns_exact(self) -> None:
        """Π = δΣw = [0.066, 0.099] точно"""
        out = synthesize_portfolio(_input())
        returns = [r.expected_return for r in out.result.equilibrium_returns]
        assert returns == [Decimal("0.066"), Decimal("0.099")]

    def test_posterior_identical_to_equilibrium(self) -> None:
        """posterior бит-идентичен prior"""
        out = synthesize_portfolio(_input())
        for prior, post in zip(out.result.equilibrium_returns, out.result.posterior_returns):
            assert post.expected_return.as_tuple() == prior.expected_return.as_tuple()
        assert all(c.shift == 0 for c in out.result.prior_vs_posterior)

    def test_optimal_weights_identical_to_market(self) -> None:
        """Оптимальные веса бит-идентичны рыночным"""
        data = _input()
        out = synthesize_portfolio(data)
        for market, optimal in zip(data.market_cap_weights, out.result.optimal_weights):
            assert optimal.name == market.name
            assert optimal.weight.as_tuple() == market.weight.as_tuple()

    def test_identity_covariance(self) -> None:
        """Σ = I, w = [0.5, 0.5], δ = 2.5 → Π = [1.25, 1.25]"""
        out = synthesize_portfolio(
            _input(
                market_cap_weights=[{"name": "A", "weight": "0.5"}, {"name": "B", "weight": "0.5"}],
                covariance_matrix=[[1, 0], [0, 1]],
            )
        )
        returns = [r.expected_return for r in out.result.equilibrium_returns]
        assert returns == [Decimal("1.25"), Decimal("1.25")]

    def test_portfolio_metrics(self) -> None:
        """E[R_p] = w·Π, σ_p = sqrt(wᵗΣw), Sharpe = (E[R_p] - r_f)/σ_p"""
        out = synthesize_portfolio(_input(risk_free_rate="0.02"))
        result = out.result
        assert result.portfolio_expected_return == Decimal("0.0792")
        assert result.portfolio_volatility == sqrt(Decimal("0.03168"))
        excess = result.portfolio_sharpe * result.portfolio_volatility
        assert abs(excess - Decimal("0.0592")) < TOL

    def test_zero_volatility_sharpe_is_zero(self) -> None:
        """σ_p = 0 → Sharpe = 0"""
        out = synthesize_portfolio(
            _input(
                market_cap_weights=[{"name": "CASH", "weight": "1"}],
                covariance_matrix=[["0"]],
            )
        )
        assert out.result.portfolio_volatility == 0
        assert out.result.portfolio_sharpe == 0

    def test_singular_covariance_allowed_without_views(self) -> None:
        """Без взглядов обращение Σ не требуется"""
        out = synthesize_portfolio(
            _input(covariance_matrix=[["0.04", "0.04"], ["0.04", "0.04"]])
        )
        assert len(out.result.optimal_weights) == 2


# =============================================================================
# VIEWS
# =============================================================================


class TestViews:
    """Смещение posterior под влиянием взглядов"""

    def test_absolute_view_shift(self) -> None:
        """Сдвиг = c·(Q - Π_A)·Σ_iA/Σ_AA: A +0.017, B +0.00255"""
        out = synthesize_portfolio(_input([_absolute("A", "0.10", "0.5")]))
        assert abs(_posterior(out, "A") - Decimal("0.083")) < TOL
        assert abs(_posterior(out, "B") - Decimal("0.10155")) < TOL

    def test_absolute_view_moves_toward_view(self) -> None:
        """Posterior лежит между prior и взглядом"""
        out = synthesize_portfolio(_input([_absolute("B", "0.05", "0.4")]))
        posterior_b = _posterior(out, "B")
        assert Decimal("0.05") < posterior_b < Decimal("0.099")

    def test_relative_view_spread(self) -> None:
        """Спред A-B: -0.033 + 0.5·(0.10 + 0.033) = 0.0335"""
        out = synthesize_portfolio(_input([_relative("A", "B", "0.10", "0.5")]))
        spread = _posterior(out, "A") - _posterior(out, "B")
        assert abs(spread - Decimal("0.0335")) < TOL

    def test_monotonic_confidence(self) -> None:
        """Рост confidence строго увеличивает |posterior - prior|"""
        shifts = []
        for confidence in ("0.1", "0.3", "0.6", "0.9"):
            out = synthesize_portfolio(_input([_absolute("A", "0.10", confidence)]))
            comparison = out.result.prior_vs_posterior[0]
            shifts.append(abs(comparison.shift))
        assert all(a < b for a, b in zip(shifts, shifts[1:]))

    def test_monotonic_confidence_small_scale_covariance(self) -> None:
        """Дневной масштаб Σ: смещение = c·(Q - Π_A) и строго растёт с confidence"""
        shifts = []
        for confidence in ("0.5", "0.8", "0.95", "0.99"):
            out = synthesize_portfolio(
                _input(
                    [_absolute("A", "0.001", confidence)],
                    covariance_matrix=[["0.000001", "0"], ["0", "0.000001"]],
                    tau="0.025",
                )
            )
            comparison = out.result.prior_vs_posterior[0]
            # Π_A = 2.5·1e-6·0.6
            expected = Decimal(confidence) * (Decimal("0.001") - Decimal("0.0000015"))
            assert abs(comparison.shift - expected) < TOL
            shifts.append(abs(comparison.shift))
        assert all(a < b for a, b in zip(shifts, shifts[1:]))

    def test_zero_variance_view_has_no_effect(self) -> None:
        """Нулевая строка P: Ω_ii = omega_floor, posterior ≈ prior"""
        view = View(
            view_type=ViewType.ABSOLUTE,
            assets=["A"],
            asset_weights=[Decimal(0)],
            expected_return=Decimal("0.5"),
            confidence=Decimal("0.9"),
        )
        out = synthesize_portfolio(_input([view]))
        for c in out.result.prior_vs_posterior:
            assert abs(c.shift) < TOL

    def test_full_confidence_reaches_view(self) -> None:
        """confidence = 1: Ω_ii = omega_floor·(PτΣPᵗ)_ii, posterior ≈ взгляд"""
        out = synthesize_portfolio(_input([_absolute("A", "0.10", "1")]))
        assert abs(_posterior(out, "A") - Decimal("0.10")) < Decimal("1e-6")

    def test_shift_equals_posterior_minus_prior(self) -> None:
        """shift = posterior - prior"""
        out = synthesize_portfolio(_input([_absolute("A", "0.12", "0.7")]))
        for c in out.result.prior_vs_posterior:
            assert c.shift == c.posterior_return - c.prior_return

    def test_optimal_weights_normalised(self) -> None:
        """w* = (δΣ)⁻¹E[R] нормирован: [0.77, 0.40] / 1.17"""
        out = synthesize_portfolio(_input([_absolute("A", "0.10", "0.5")]))
        weights = [w.weight for w in out.result.optimal_weights]
        assert abs(sum(weights) - 1) < TOL
        assert abs(weights[0] - Decimal("0.77") / Decimal("1.17")) < Decimal("1e-9")

    def test_multiple_views(self) -> None:
        """Несколько взглядов одновременно"""
        out = synthesize_portfolio(
            _input([_absolute("A", "0.10", "0.5"), _relative("A", "B", "0.02", "0.3")])
        )
        assert len(out.result.posterior_returns) == 2
        assert out.assumptions["n_views"] == 2

    def test_singular_covariance_with_views(self) -> None:
        """Вырожденная Σ при наличии взглядов → SingularMatrixError"""
        with pytest.raises(SingularMatrixError):
            synthesize_portfolio(
                _input(
                    [_absolute("A", "0.10", "0.5")],
                    covariance_matrix=[["0.04", "0.04"], ["0.04", "0.04"]],
                )
            )

    def test_independent_of_caller_context(self) -> None:
        """Результат не зависит от decimal-контекста вызывающего"""
        data = _input([_absolute("A", "0.10", "0.5")])
        reference = synthesize_portfolio(data).result
        with localcontext() as ctx:
            ctx.prec = 6
            assert synthesize_portfolio(data).result == reference


# =============================================================================
# WARNINGS
# =============================================================================


class TestWarnings:
    """Non-fatal предупреждения"""

    def test_concentrated_position(self) -> None:
        """Вес > 0.4 → Concentrated position"""
        out = synthesize_portfolio(_input())
        assert "Concentrated position: A has weight 0.6000" in out.warnings
        assert not any("B has weight" in w for w in out.warnings)

    def test_short_position(self) -> None:
        """Вес < -0.1 → Short position"""
        out = synthesize_portfolio(
            _input(market_cap_weights=[{"name": "A", "weight": "1.2"}, {"name": "B", "weight": "-0.2"}])
        )
        assert "Short position: B has weight -0.2000" in out.warnings
        assert "Concentrated position: A has weight 1.2000" in out.warnings

    def test_high_volatility(self) -> None:
        """σ_p > 0.3 → High portfolio volatility"""
        out = synthesize_portfolio(
            _input(
                market_cap_weights=[{"name": "A", "weight": "0.5"}, {"name": "B", "weight": "0.5"}],
                covariance_matrix=[["0.25", "0"], ["0", "0.25"]],
            )
        )
        assert "High portfolio volatility: 0.3536" in out.warnings

    def test_thresholds_configurable(self) -> None:
        """Пороги берутся из BlackLittermanConfig"""
        config = BlackLittermanConfig(concentration_threshold=Decimal("0.7"))
        out = BlackLittermanSynthesizer(config).synthesize(_input())
        assert out.warnings == []


# =============================================================================
# VALIDATION
# =============================================================================


class TestValidation:
    """Ошибки валидации (fail fast)"""

    def test_no_assets(self) -> None:
        """Пустой список активов → InsufficientDataError"""
        with pytest.raises(InsufficientDataError, match="At least one asset required"):
            synthesize_portfolio(_input(market_cap_weights=[], covariance_matrix=[]))

    @pytest.mark.parametrize("tau", ["0", "-0.05"])
    def test_non_positive_tau(self, tau: str) -> None:
        """tau <= 0"""
        with pytest.raises(InvalidInputError, match="tau must be positive") as exc_info:
            synthesize_portfolio(_input(tau=tau))
        assert exc_info.value.field == "tau"

    def test_non_positive_risk_aversion(self) -> None:
        """risk_aversion <= 0"""
        with pytest.raises(InvalidInputError, match="risk_aversion must be positive"):
            synthesize_portfolio(_input(risk_aversion="0"))

    def test_tau_checked_before_covariance(self) -> None:
        """tau проверяется раньше ковариации"""
        with pytest.raises(InvalidInputError) as exc_info:
            synthesize_portfolio(_input(tau="0", covariance_matrix=[["1"]]))
        assert exc_info.value.field == "tau"

    def test_covariance_wrong_size(self) -> None:
        """Ковариация не N×N"""
        with pytest.raises(InvalidInputError, match="Expected 2x2 matrix but got 1 rows"):
            synthesize_portfolio(_input(covariance_matrix=[["0.04", "0"]]))

    def test_covariance_not_symmetric(self) -> None:
        """Асимметричная ковариация"""
        with pytest.raises(InvalidInputError, match="Not symmetric") as exc_info:
            synthesize_portfolio(_input(covariance_matrix=[["0.04", "0.006"], ["0.01", "0.09"]]))
        assert exc_info.value.field == "covariance_matrix"

    def test_weights_must_sum_to_one(self) -> None:
        """Σw вне 1 ± 0.01"""
        with pytest.raises(InvalidInputError, match=r"Weights must sum to 1.0 \(got 0.9\)"):
            synthesize_portfolio(
                _input(market_cap_weights=[{"name": "A", "weight": "0.5"}, {"name": "B", "weight": "0.4"}])
            )

    def test_weights_within_tolerance(self) -> None:
        """Σw = 1.005 допускается"""
        out = synthesize_portfolio(
            _input(market_cap_weights=[{"name": "A", "weight": "0.605"}, {"name": "B", "weight": "0.4"}])
        )
        assert out.result.optimal_weights[0].weight == Decimal("0.605")

    @pytest.mark.parametrize("confidence", ["0", "-0.5", "1.5"])
    def test_confidence_out_of_range(self, confidence: str) -> None:
        """confidence вне (0, 1]"""
        with pytest.raises(InvalidInputError) as exc_info:
            synthesize_portfolio(_input([_absolute("A", "0.1", confidence)]))
        assert exc_info.value.field == "views[0].confidence"

    def test_pick_length_mismatch(self) -> None:
        """len(assets) != len(asset_weights)"""
        view = View(
            view_type=ViewType.RELATIVE,
            assets=["A", "B"],
            asset_weights=[Decimal(1)],
            expected_return=Decimal("0.02"),
            confidence=Decimal("0.5"),
        )
        with pytest.raises(InvalidInputError, match="same length") as exc_info:
            synthesize_portfolio(_input([view]))
        assert exc_info.value.field == "views[0]"

    def test_unknown_asset(self) -> None:
        """Взгляд на неизвестный актив"""
        with pytest.raises(InvalidInputError, match="Unknown asset 'C'") as exc_info:
            synthesize_portfolio(_input([_absolute("A", "0.1", "0.5"), _absolute("C", "0.1", "0.5")]))
        assert exc_info.value.field == "views[1].assets"

    def test_duplicate_asset_name(self) -> None:
        """Повтор имени актива отклоняется до матричной работы"""
        with pytest.raises(InvalidInputError, match="Duplicate asset name 'A'") as exc_info:
            synthesize_portfolio(
                _input(
                    [_absolute("A", "0.1", "0.5")],
                    market_cap_weights=[
                        {"name": "A", "weight": "0.6"},
                        {"name": "A", "weight": "0.4"},
                    ],
                )
            )
        assert exc_info.value.field == "market_cap_weights"


# =============================================================================
# ENVELOPE
# =============================================================================


class TestEnvelope:
    """ComputationOutput: методология, допущения, metadata"""

    def test_methodology_and_assumptions(self) -> None:
        out = synthesize_portfolio(_input())
        assert out.methodology == METHODOLOGY == "Black-Litterman Portfolio Optimisation"
        assert out.assumptions == {
            "n_assets": 2,
            "n_views": 0,
            "risk_aversion": "2.5",
            "tau": "0.05",
            "risk_free_rate": "0",
        }

    def test_metadata(self) -> None:
        out = synthesize_portfolio(_input())
        assert out.metadata.precision == "decimal_128bit"
        assert out.metadata.computation_time_us >= 0

    def test_mapping_input(self) -> None:
        """synthesize_portfolio принимает mapping"""
        out = synthesize_portfolio(_input().model_dump())
        assert [w.weight for w in out.result.optimal_weights] == [Decimal("0.6"), Decimal("0.4")]

    def test_json_round_trip(self) -> None:
        """Результат сериализуется в JSON"""
        out = synthesize_portfolio(_input([_absolute("A", "0.10", "0.5")]))
        assert '"methodology":"Black-Litterman Portfolio Optimisation"' in out.model_dump_json()

"""
Risk Parity — Модели входа и выхода
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from .assets import AssetAllocation, AssetInfo


class RiskParityMethod(str, Enum):
    """Метод построения весов"""

    # w_i = (1/σ_i) / Σ(1/σ_j), корреляции игнорируются
    INVERSE_VOLATILITY = "inverse_volatility"
    # Итеративное выравнивание вкладов в риск
    EQUAL_RISK_CONTRIBUTION = "equal_risk_contribution"
    # w = Σ⁻¹·1 / (1ᵗΣ⁻¹1)
    MIN_VARIANCE = "min_variance"

    @property
    def label(self) -> str:
        """Человекочитаемое имя для methodology."""
        return "".join(part.capitalize() for part in self.value.split("_"))


class RiskParityInput(BaseModel):
    """Вход risk parity оптимизатора."""

    assets: list[AssetInfo] = Field(..., description="Активы (имя, доходность, волатильность)")
    covariance_matrix: list[list[Decimal]] = Field(
        ..., description="Ковариационная матрица N×N (row-major)"
    )
    method: RiskParityMethod = Field(..., description="Метод построения весов")
    target_volatility: Decimal | None = Field(
        default=None, description="Целевая волатильность; веса масштабируются post-hoc"
    )
    risk_free_rate: Decimal | None = Field(
        default=None, description="Безрисковая ставка для Sharpe (по умолчанию 0)"
    )

    model_config = {"frozen": True}


class RiskContribution(BaseModel):
    """Разложение риска по одному активу."""

    name: str
    marginal_risk: Decimal = Field(..., description="(Σw)_i / σ_p")
    risk_contribution: Decimal = Field(..., description="w_i · marginal_risk")
    risk_pct: Decimal = Field(..., description="Доля в общем риске портфеля")

    model_config = {"frozen": True}


class RiskParityOutput(BaseModel):
    """Результат risk parity оптимизатора."""

    weights: list[AssetAllocation]
    risk_contributions: list[RiskContribution]
    portfolio_volatility: Decimal
    portfolio_expected_return: Decimal
    portfolio_sharpe: Decimal
    diversification_ratio: Decimal = Field(..., description="Σw_iσ_i / σ_p")
    effective_num_assets: Decimal = Field(..., description="1 / Σw_i² (обратный Herfindahl)")

    model_config = {"frozen": True}

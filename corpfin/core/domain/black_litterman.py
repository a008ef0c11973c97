"""
Black-Litterman — Модели входа и выхода

Вход: рыночные веса, ковариация, risk aversion (δ), tau (τ), взгляды,
безрисковая ставка. Выход: равновесные и апостериорные доходности,
оптимальные веса, сравнение prior/posterior и метрики портфеля.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from .assets import AssetReturn, AssetWeight
from .view import View


class BlackLittermanInput(BaseModel):
    """
    Вход модели Black-Litterman.

    Структура проверяется pydantic; содержательные инварианты (сумма
    весов, симметрия ковариации, ссылки взглядов) проверяет калькулятор.
    """

    market_cap_weights: list[AssetWeight] = Field(
        ..., description="Веса по рыночной капитализации (сумма ≈ 1)"
    )
    covariance_matrix: list[list[Decimal]] = Field(
        ..., description="Годовая ковариационная матрица N×N (row-major)"
    )
    risk_aversion: Decimal = Field(..., description="Коэффициент неприятия риска δ (~2.5)")
    tau: Decimal = Field(..., description="Масштаб неопределённости prior τ (0.025-0.05)")
    views: list[View] = Field(default_factory=list, description="Взгляды инвестора")
    risk_free_rate: Decimal = Field(default=Decimal(0), description="Безрисковая ставка (годовая)")

    model_config = {"frozen": True}


class ReturnComparison(BaseModel):
    """Сравнение prior (равновесной) и posterior доходности одного актива."""

    name: str
    prior_return: Decimal
    posterior_return: Decimal
    shift: Decimal = Field(..., description="posterior - prior")

    model_config = {"frozen": True}


class BlackLittermanOutput(BaseModel):
    """Результат модели Black-Litterman."""

    equilibrium_returns: list[AssetReturn] = Field(..., description="Π = δ·Σ·w_mkt")
    posterior_returns: list[AssetReturn] = Field(..., description="E[R] после учёта взглядов")
    optimal_weights: list[AssetWeight] = Field(..., description="w* = (δΣ)⁻¹·E[R], Σw* = 1")
    prior_vs_posterior: list[ReturnComparison]
    portfolio_expected_return: Decimal = Field(..., description="w*·E[R]")
    portfolio_volatility: Decimal = Field(..., description="sqrt(w*ᵗΣw*)")
    portfolio_sharpe: Decimal = Field(..., description="(E[R_p] - r_f) / σ_p")

    model_config = {"frozen": True}

"""
View — Субъективный взгляд инвестора на доходности

Абсолютный взгляд: ожидаемая доходность одного актива (pick-вектор [1]).
Относительный взгляд: спред доходностей двух активов ("A обгонит B",
pick-вектор [1, -1]).

confidence ∈ (0, 1]: при 1 взгляд почти достоверен, при → 0 почти не учитывается.
Диапазон проверяет калькулятор (InvalidInputError с индексом взгляда).
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class ViewType(str, Enum):
    """Тип взгляда"""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class View(BaseModel):
    """
    Взгляд инвестора для модели Black-Litterman.

    assets и asset_weights образуют строку pick-матрицы P: ненулевые
    элементы только в столбцах перечисленных активов.
    """

    view_type: ViewType = Field(..., description="Абсолютный или относительный")
    assets: list[str] = Field(..., min_length=1, description="Активы взгляда")
    asset_weights: list[Decimal] = Field(
        ..., min_length=1, description="Строка pick-матрицы для assets"
    )
    expected_return: Decimal = Field(..., description="Ожидаемая доходность (или спред)")
    confidence: Decimal = Field(..., description="Уверенность в (0, 1]")

    model_config = {"frozen": True}

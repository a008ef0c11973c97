"""
Assets — Именованные скалярные значения по активам

Immutable Pydantic модели, связывающие имя актива с весом, доходностью
или волатильностью. Порядок элементов в списках всегда совпадает с
порядком строк ковариационной матрицы.
"""

from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field

from corpfin.core.errors import InvalidInputError


class AssetWeight(BaseModel):
    """Вес актива в портфеле (доля, 0.6 = 60%)."""

    name: str = Field(..., min_length=1, description="Имя актива")
    weight: Decimal = Field(..., description="Вес актива")

    model_config = {"frozen": True}


class AssetInfo(BaseModel):
    """
    Описание актива для risk parity.

    Волатильность проверяется на строгую положительность калькулятором,
    а не моделью, чтобы ошибка несла индекс актива в поле.
    """

    name: str = Field(..., min_length=1, description="Имя актива")
    expected_return: Decimal = Field(..., description="Ожидаемая доходность (годовая)")
    volatility: Decimal = Field(..., description="Волатильность (годовая)")

    model_config = {"frozen": True}


class AssetReturn(BaseModel):
    """Ожидаемая доходность одного актива."""

    name: str = Field(..., description="Имя актива")
    expected_return: Decimal = Field(..., description="Ожидаемая доходность")

    model_config = {"frozen": True}


class AssetAllocation(AssetWeight):
    """Вес актива, назначенный оптимизатором (может быть > 1 после target vol)."""


def validate_unique_names(names: Iterable[str], field: str) -> None:
    """
    Проверка уникальности имён активов.

    Имя актива адресует строку ковариационной матрицы и взгляды, поэтому
    повтор сделал бы ссылку неоднозначной.

    Raises:
        InvalidInputError: Имя встречается более одного раза
    """
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise InvalidInputError(field, f"Duplicate asset name '{name}'")
        seen.add(name)

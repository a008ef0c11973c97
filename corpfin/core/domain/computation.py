"""
ComputationOutput — Стандартный конверт результата калькулятора

Каждый калькулятор возвращает результат вместе с методологией,
использованными допущениями, списком non-fatal предупреждений и metadata
(версия библиотеки, время вычисления, точность арифметики).
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from corpfin._version import __version__
from corpfin.core.math.numerical_safeguards import PRECISION_LABEL

ResultT = TypeVar("ResultT")


class ComputationMetadata(BaseModel):
    """Metadata вычисления."""

    version: str = Field(..., description="Версия библиотеки")
    computation_time_us: int = Field(..., ge=0, description="Время вычисления (микросекунды)")
    precision: str = Field(..., description="Точность арифметики")

    model_config = {"frozen": True}


class ComputationOutput(BaseModel, Generic[ResultT]):
    """
    Конверт результата калькулятора.

    warnings содержит advisory условия (концентрация позиций, низкая
    диверсификация); их наличие не означает ошибку расчёта.
    """

    result: ResultT = Field(..., description="Результат калькулятора")
    methodology: str = Field(..., description="Название методологии")
    assumptions: dict[str, Any] = Field(
        default_factory=dict, description="Скалярные допущения расчёта"
    )
    warnings: list[str] = Field(default_factory=list, description="Non-fatal предупреждения")
    metadata: ComputationMetadata = Field(..., description="Metadata вычисления")

    model_config = {"frozen": True}


def with_metadata(
    methodology: str,
    assumptions: dict[str, Any],
    warnings: list[str],
    elapsed_us: int,
    result: ResultT,
) -> ComputationOutput[ResultT]:
    """
    Обёртка результата в ComputationOutput.

    Args:
        methodology: Название методологии
        assumptions: Допущения (значения сериализуемы в JSON)
        warnings: Non-fatal предупреждения
        elapsed_us: Время вычисления (микросекунды)
        result: Результат калькулятора

    Returns:
        ComputationOutput с заполненной metadata
    """
    return ComputationOutput[type(result)](
        result=result,
        methodology=methodology,
        assumptions=assumptions,
        warnings=warnings,
        metadata=ComputationMetadata(
            version=__version__,
            computation_time_us=elapsed_us,
            precision=PRECISION_LABEL,
        ),
    )

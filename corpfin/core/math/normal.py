"""
NormalDistribution — Стандартное нормальное распределение над Decimal

PDF считается напрямую через DecimalMath, CDF считается рациональной
аппроксимацией Abramowitz & Stegun 26.2.17 (абсолютная ошибка < 7.5e-8).

ФОРМУЛЫ:
    φ(x) = exp(-x²/2) / sqrt(2π)
    t    = 1 / (1 + p·|x|),  p = 0.2316419
    Φ(x) = 1 - φ(x)·(b1·t + b2·t² + b3·t³ + b4·t⁴ + b5·t⁵),  x >= 0
    Φ(x) = 1 - Φ(-x),  x < 0
"""

from decimal import Decimal
from typing import Final

from corpfin.core.math.decimal_math import TWO_PI, exp, sqrt
from corpfin.core.math.numerical_safeguards import (
    ONE,
    TWO,
    ZERO,
    clamp,
    with_kernel_context,
)

# Коэффициенты Abramowitz & Stegun 26.2.17
AS_P: Final[Decimal] = Decimal("0.2316419")
AS_B1: Final[Decimal] = Decimal("0.319381530")
AS_B2: Final[Decimal] = Decimal("-0.356563782")
AS_B3: Final[Decimal] = Decimal("1.781477937")
AS_B4: Final[Decimal] = Decimal("-1.821255978")
AS_B5: Final[Decimal] = Decimal("1.330274429")

# За пределами |x| > 10 хвосты клампятся в 0/1
CDF_TAIL_BOUND: Final[Decimal] = Decimal(10)


@with_kernel_context
def norm_pdf(x: Decimal) -> Decimal:
    """Плотность стандартного нормального распределения φ(x)."""
    return exp(-(x * x) / TWO) / sqrt(TWO_PI)


@with_kernel_context
def norm_cdf(x: Decimal) -> Decimal:
    """
    Функция распределения стандартного нормального закона Φ(x).

    Args:
        x: Аргумент

    Returns:
        Φ(x) в [0, 1]; ровно 0 при x <= -10 и ровно 1 при x >= 10
    """
    if x <= -CDF_TAIL_BOUND:
        return ZERO
    if x >= CDF_TAIL_BOUND:
        return ONE

    abs_x = -x if x < ZERO else x
    t = ONE / (ONE + AS_P * abs_x)

    # Horner: t·(b1 + t·(b2 + t·(b3 + t·(b4 + t·b5))))
    poly = t * (AS_B1 + t * (AS_B2 + t * (AS_B3 + t * (AS_B4 + t * AS_B5))))
    cdf_positive = ONE - norm_pdf(abs_x) * poly

    cdf = ONE - cdf_positive if x < ZERO else cdf_positive
    return clamp(cdf, ZERO, ONE)

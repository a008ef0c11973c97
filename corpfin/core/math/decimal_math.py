"""
DecimalMath — Детерминированные трансцендентные функции над Decimal

Скалярные примитивы для всех калькуляторов библиотеки:
- sqrt: метод Ньютона, фиксированное число итераций
- cbrt: метод Ньютона по модулю, знак восстанавливается
- exp: ряд Тейлора на редуцированном аргументе, exp(x) = exp(x/2)^2
- ln: метод Ньютона на exp(y) = x

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Функции тотальны: для любого конечного Decimal возвращают значение, не бросают
2. Число итераций фиксировано (не проверка сходимости), поэтому время
   выполнения и результат идентичны для одинакового входа на любой платформе
3. Все вычисления в KERNEL_CONTEXT (28 значащих цифр)
4. Вне области определения ln возвращает sentinel LN_DOMAIN_SENTINEL

ФОРМУЛЫ:
    sqrt:  g ← (g + x/g) / 2
    cbrt:  g ← (2g + x/g²) / 3
    exp:   Σ_{n=0}^{25} xⁿ/n!   при |x| <= 2
    ln:    y ← y - 1 + x/exp(y)
"""

from decimal import Decimal
from typing import Final

from corpfin.core.math.numerical_safeguards import (
    ONE,
    TWO,
    ZERO,
    with_kernel_context,
)
from corpfin.logging import get_logger

logger = get_logger(__name__)

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

SQRT_ITERATIONS: Final[int] = 25
CBRT_ITERATIONS: Final[int] = 30
EXP_TAYLOR_TERMS: Final[int] = 25
LN_NEWTON_ITERATIONS: Final[int] = 30

# Порог редукции аргумента exp: пока |x| > 2, x делится пополам
EXP_REDUCTION_BOUND: Final[Decimal] = TWO

# Десятичное приближение e, используется только для начального приближения ln
E_APPROX: Final[Decimal] = Decimal("2.718281828459045")

TWO_PI: Final[Decimal] = Decimal("6.283185307179586")

# ln(x) для x <= 0 не определён; возвращается заведомо бессмысленное значение
LN_DOMAIN_SENTINEL: Final[Decimal] = Decimal(-999)

# Границы, вне которых начальное приближение sqrt/cbrt берётся по порядку числа
_SEED_UPPER: Final[Decimal] = Decimal(100)
_SEED_LOWER: Final[Decimal] = Decimal("0.01")
_THREE: Final[Decimal] = Decimal(3)
_HALF: Final[Decimal] = Decimal("0.5")


# =============================================================================
# SQRT / CBRT
# =============================================================================


@with_kernel_context
def sqrt(x: Decimal) -> Decimal:
    """
    Квадратный корень методом Ньютона (25 итераций).

    Начальное приближение x/2; для x > 100 или x < 0.01 берётся степень десяти,
    ближайшая к корню (10^(adjusted(x) // 2)), чтобы 25 итераций хватало
    на любом порядке величины.

    Args:
        x: Подкоренное значение

    Returns:
        sqrt(x); 0 для x <= 0 (доменная защита, не ошибка)

    Examples:
        >>> sqrt(Decimal(4)) == 2
        True
        >>> sqrt(Decimal(-1))
        Decimal('0')
    """
    if x.is_nan():
        return x
    if x <= ZERO:
        return ZERO
    if x.is_infinite():
        return x
    if x == ONE:
        return ONE

    if x > _SEED_UPPER or x < _SEED_LOWER:
        guess = ONE.scaleb(x.adjusted() // 2)
    else:
        guess = x / TWO

    for _ in range(SQRT_ITERATIONS):
        guess = (guess + x / guess) / TWO

    return guess


@with_kernel_context
def cbrt(x: Decimal) -> Decimal:
    """
    Кубический корень методом Ньютона (30 итераций) с сохранением знака.

    Args:
        x: Значение (любого знака)

    Returns:
        cbrt(x), cbrt(-x) == -cbrt(x)
    """
    if x.is_nan() or x.is_infinite():
        return x
    if x.is_zero():
        return ZERO

    negative = x < ZERO
    magnitude = -x if negative else x

    if magnitude > _SEED_UPPER or magnitude < _SEED_LOWER:
        guess = ONE.scaleb(magnitude.adjusted() // 3)
    else:
        guess = magnitude / _THREE + _HALF

    for _ in range(CBRT_ITERATIONS):
        guess = (TWO * guess + magnitude / (guess * guess)) / _THREE

    return -guess if negative else guess


# =============================================================================
# EXP / LN
# =============================================================================


@with_kernel_context
def exp(x: Decimal) -> Decimal:
    """
    Экспонента: редукция аргумента + ряд Тейлора (25 членов).

    Пока |x| > 2, аргумент делится пополам; результат ряда затем
    возводится в квадрат столько раз, сколько было делений:
        exp(x) = exp(x / 2^k) ^ (2^k)

    Args:
        x: Показатель

    Returns:
        e^x; при переполнении KERNEL_CONTEXT возвращается Infinity (не исключение)
    """
    if x.is_nan():
        return x
    if x.is_infinite():
        return x if x > ZERO else ZERO

    halvings = 0
    while abs(x) > EXP_REDUCTION_BOUND:
        x = x / TWO
        halvings += 1

    total = ONE
    term = ONE
    for n in range(1, EXP_TAYLOR_TERMS + 1):
        term = term * x / n
        total += term

    for _ in range(halvings):
        total = total * total

    return total


@with_kernel_context
def ln(x: Decimal) -> Decimal:
    """
    Натуральный логарифм методом Ньютона (30 итераций) на exp(y) = x.

    Начальное приближение:
    - 0.5 < x < 2: y0 = x - 1
    - иначе: x делится (или умножается) на e до попадания в [1/e, e],
      y0 = число делений + (остаток - 1)

    ВАЖНО: для x <= 0 возвращается LN_DOMAIN_SENTINEL (-999) и пишется
    warning-событие ln_domain_violation. Вызывающий код отвечает за
    проверку домена, если бессмысленный результат для него критичен.

    Args:
        x: Аргумент логарифма

    Returns:
        ln(x) или LN_DOMAIN_SENTINEL
    """
    if x.is_nan():
        return x
    if x <= ZERO:
        logger.warning("ln_domain_violation", x=str(x), sentinel=str(LN_DOMAIN_SENTINEL))
        return LN_DOMAIN_SENTINEL
    if x.is_infinite():
        return x
    if x == ONE:
        return ZERO

    if _HALF < x < TWO:
        y = x - ONE
    else:
        powers = ZERO
        v = x
        if x > ONE:
            while v > E_APPROX:
                v /= E_APPROX
                powers += ONE
        else:
            lower = ONE / E_APPROX
            while v < lower:
                v *= E_APPROX
                powers -= ONE
        y = powers + (v - ONE)

    for _ in range(LN_NEWTON_ITERATIONS):
        ey = exp(y)
        if ey.is_zero():
            break
        y = y - ONE + x / ey

    return y

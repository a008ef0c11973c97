"""
Numerical Safeguards — Decimal-контекст и безопасные примитивы

Модуль задаёт единственный допустимый числовой контекст ядра и базовые
защиты, на которых построены все остальные модули:
- Фиксированный decimal.Context (28 значащих цифр, ROUND_HALF_EVEN)
- Конверсия входных значений в Decimal без binary float артефактов
- Epsilon-пороги (pivot, симметрия ковариации, сумма весов)
- Безопасное деление с fallback при нулевом знаменателе
- Epsilon-сравнения и валидация параметров

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Никакой binary floating point в вычислениях (float → Decimal только через str)
2. NaN/Inf никогда не попадают в ядро (отклоняются на входе)
3. Все вычисления выполняются в KERNEL_CONTEXT, независимо от контекста вызывающего
4. Все операции детерминированы и воспроизводимы на любой платформе
"""

import functools
from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    localcontext,
)
from typing import Final

from corpfin.core.errors import InvalidInputError

# =============================================================================
# DECIMAL-КОНТЕКСТ
# =============================================================================

# 28 значащих цифр: точность 128-битного decimal с 96-битной мантиссой.
# Overflow не перехватывается: ядро тотально и возвращает Infinity вместо исключения.
KERNEL_PRECISION: Final[int] = 28

KERNEL_CONTEXT: Final[Context] = Context(
    prec=KERNEL_PRECISION,
    rounding=ROUND_HALF_EVEN,
    Emax=999_999,
    Emin=-999_999,
    traps=[InvalidOperation, DivisionByZero],
)

# Метка точности для metadata результатов
PRECISION_LABEL: Final[str] = "decimal_128bit"

ZERO: Final[Decimal] = Decimal(0)
ONE: Final[Decimal] = Decimal(1)
TWO: Final[Decimal] = Decimal(2)


# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Минимальный модуль pivot при Gauss-Jordan; ниже матрица считается вырожденной
PIVOT_EPS: Final[Decimal] = Decimal("1e-10")

# Допуск симметрии ковариационной матрицы: |Σ_ij - Σ_ji| <= tol
SYMMETRY_TOLERANCE: Final[Decimal] = Decimal("0.000001")

# Допуск суммы весов полностью инвестированного портфеля: |Σw - 1| <= tol
WEIGHT_SUM_TOLERANCE: Final[Decimal] = Decimal("0.01")

# Абсолютная толерантность для сравнений по умолчанию
EPS_COMPARE_ABS: Final[Decimal] = Decimal("1e-12")


# =============================================================================
# КОНТЕКСТ ВЫЧИСЛЕНИЙ
# =============================================================================


def kernel_context():
    """
    Context manager, устанавливающий KERNEL_CONTEXT для текущего потока.

    decimal.localcontext работает с thread-local контекстом, поэтому
    параллельные вызовы из разных потоков не влияют друг на друга.
    """
    return localcontext(KERNEL_CONTEXT)


def with_kernel_context(func):
    """
    Декоратор: выполнить функцию внутри KERNEL_CONTEXT.

    Результат функции не зависит от decimal-контекста вызывающего кода.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with kernel_context():
            return func(*args, **kwargs)

    return wrapper


# =============================================================================
# КОНВЕРСИЯ И САНИТИЗАЦИЯ
# =============================================================================


def is_valid_decimal(value: Decimal) -> bool:
    """
    Проверка, является ли Decimal конечным числом (не NaN, не Inf).

    Args:
        value: Проверяемое значение

    Returns:
        True если значение конечное
    """
    return value.is_finite()


def to_decimal(value: Decimal | int | float | str, name: str = "value") -> Decimal:
    """
    Конверсия значения в Decimal без binary float артефактов.

    float конвертируется через str(), то есть 0.1 → Decimal("0.1"),
    а не Decimal(0.1000000000000000055511151231257827...).

    Args:
        value: Decimal, int, float или строка
        name: Имя параметра (для сообщения об ошибке)

    Returns:
        Конечное Decimal значение

    Raises:
        InvalidInputError: Если значение не число, NaN или Inf

    Examples:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal("2.5")
        Decimal('2.5')
    """
    if isinstance(value, bool):
        raise InvalidInputError(name, f"expected a number, got bool {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidInputError(name, f"not a decimal number: {value!r}") from None
    else:
        raise InvalidInputError(
            name, f"expected Decimal, int, float or str, got {type(value).__name__}"
        )

    if not is_valid_decimal(result):
        raise InvalidInputError(name, f"must be finite (not NaN/Inf), got {value!r}")

    return result


# =============================================================================
# БЕЗОПАСНОЕ ДЕЛЕНИЕ
# =============================================================================


def safe_divide(
    numerator: Decimal,
    denominator: Decimal,
    fallback: Decimal = ZERO,
) -> Decimal:
    """
    Деление с fallback при нулевом знаменателе.

    В отличие от float-версии не требует epsilon-защиты: Decimal деление
    на ненулевое значение всегда конечно в пределах KERNEL_CONTEXT.

    Args:
        numerator: Числитель
        denominator: Знаменатель
        fallback: Значение при denominator == 0 (default: 0)

    Returns:
        numerator / denominator или fallback

    Examples:
        >>> safe_divide(Decimal(10), Decimal(4))
        Decimal('2.5')
        >>> safe_divide(Decimal(10), Decimal(0))
        Decimal('0')
    """
    if denominator.is_zero():
        return fallback
    with kernel_context():
        return numerator / denominator


# =============================================================================
# EPSILON-СРАВНЕНИЯ
# =============================================================================


def is_close(a: Decimal, b: Decimal, abs_tol: Decimal = EPS_COMPARE_ABS) -> bool:
    """
    Сравнение двух Decimal с абсолютной толерантностью.

    Args:
        a: Первое значение
        b: Второе значение
        abs_tol: Абсолютная толерантность (default: 1e-12)

    Returns:
        True если |a - b| <= abs_tol
    """
    with kernel_context():
        return abs(a - b) <= abs_tol


def is_zero(value: Decimal, tol: Decimal = EPS_COMPARE_ABS) -> bool:
    """True если |value| <= tol."""
    return abs(value) <= tol


def clamp(
    value: Decimal,
    min_value: Decimal | None = None,
    max_value: Decimal | None = None,
) -> Decimal:
    """
    Ограничение значения в заданном диапазоне.

    Examples:
        >>> clamp(Decimal("1.5"), ZERO, ONE)
        Decimal('1')
    """
    result = value

    if min_value is not None:
        result = max(result, min_value)

    if max_value is not None:
        result = min(result, max_value)

    return result


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_positive(value: Decimal, name: str) -> None:
    """
    Валидация, что значение строго положительное.

    Raises:
        InvalidInputError: Если value <= 0 или NaN/Inf
    """
    if not is_valid_decimal(value):
        raise InvalidInputError(name, f"must be finite (not NaN/Inf), got {value}")

    if value <= ZERO:
        raise InvalidInputError(name, f"must be positive, got {value}")


def validate_in_range(
    value: Decimal,
    name: str,
    min_value: Decimal | None = None,
    max_value: Decimal | None = None,
    min_inclusive: bool = True,
    max_inclusive: bool = True,
) -> None:
    """
    Валидация, что значение в заданном диапазоне.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)
        min_value: Нижняя граница (optional)
        max_value: Верхняя граница (optional)
        min_inclusive: Включать ли нижнюю границу
        max_inclusive: Включать ли верхнюю границу

    Raises:
        InvalidInputError: Если value вне диапазона или NaN/Inf
    """
    if not is_valid_decimal(value):
        raise InvalidInputError(name, f"must be finite (not NaN/Inf), got {value}")

    if min_value is not None:
        below = value < min_value if min_inclusive else value <= min_value
        if below:
            op = ">=" if min_inclusive else ">"
            raise InvalidInputError(name, f"must be {op} {min_value}, got {value}")

    if max_value is not None:
        above = value > max_value if max_inclusive else value >= max_value
        if above:
            op = "<=" if max_inclusive else "<"
            raise InvalidInputError(name, f"must be {op} {max_value}, got {value}")

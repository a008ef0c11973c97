"""
Core math modules для corpfin

Детерминированное числовое ядро над Decimal: трансцендентные функции,
нормальное распределение, плотные матрицы и их обращение.
Общая библиотека для всех калькуляторов (опционы, облигации, портфели).
"""

# Numerical Safeguards
from corpfin.core.math.numerical_safeguards import (
    # Context
    KERNEL_CONTEXT,
    KERNEL_PRECISION,
    PRECISION_LABEL,
    kernel_context,
    with_kernel_context,
    # Epsilon constants
    EPS_COMPARE_ABS,
    PIVOT_EPS,
    SYMMETRY_TOLERANCE,
    WEIGHT_SUM_TOLERANCE,
    # Conversion
    is_valid_decimal,
    to_decimal,
    # Safe division / comparisons
    clamp,
    is_close,
    is_zero,
    safe_divide,
    # Validation
    validate_in_range,
    validate_positive,
)

# DecimalMath
from corpfin.core.math.decimal_math import (
    CBRT_ITERATIONS,
    E_APPROX,
    EXP_TAYLOR_TERMS,
    LN_DOMAIN_SENTINEL,
    LN_NEWTON_ITERATIONS,
    SQRT_ITERATIONS,
    TWO_PI,
    cbrt,
    exp,
    ln,
    sqrt,
)

# NormalDistribution
from corpfin.core.math.normal import norm_cdf, norm_pdf

# Matrix / LinearSolver
from corpfin.core.math.matrix import Matrix, dot, vector_sum
from corpfin.core.math.linear_solver import invert

__all__ = [
    # Numerical Safeguards: Context
    "KERNEL_CONTEXT",
    "KERNEL_PRECISION",
    "PRECISION_LABEL",
    "kernel_context",
    "with_kernel_context",
    # Numerical Safeguards: Epsilon constants
    "EPS_COMPARE_ABS",
    "PIVOT_EPS",
    "SYMMETRY_TOLERANCE",
    "WEIGHT_SUM_TOLERANCE",
    # Numerical Safeguards: Conversion
    "is_valid_decimal",
    "to_decimal",
    # Numerical Safeguards: Utilities
    "clamp",
    "is_close",
    "is_zero",
    "safe_divide",
    # Numerical Safeguards: Validation
    "validate_in_range",
    "validate_positive",
    # DecimalMath: Constants
    "CBRT_ITERATIONS",
    "E_APPROX",
    "EXP_TAYLOR_TERMS",
    "LN_DOMAIN_SENTINEL",
    "LN_NEWTON_ITERATIONS",
    "SQRT_ITERATIONS",
    "TWO_PI",
    # DecimalMath: Functions
    "cbrt",
    "exp",
    "ln",
    "sqrt",
    # NormalDistribution
    "norm_cdf",
    "norm_pdf",
    # Matrix / LinearSolver
    "Matrix",
    "dot",
    "invert",
    "vector_sum",
]

"""
LinearSolver — Обращение матриц методом Гаусса-Жордана

Алгоритм:
1. Строится расширенная матрица [A | I]
2. Для каждого столбца выбирается строка с максимальным |a_ij| (partial pivoting)
   и переставляется на позицию pivot
3. Если |pivot| < pivot_tolerance → SingularMatrixError (без деления на ~0)
4. Строка pivot нормируется, столбец исключается из всех остальных строк
5. Правая половина расширенной матрицы есть A⁻¹

Сложность O(n³), где n равно числу активов (десятки максимум).
"""

from decimal import Decimal

from corpfin.core.errors import DimensionMismatchError, SingularMatrixError
from corpfin.core.math.matrix import Matrix
from corpfin.core.math.numerical_safeguards import ONE, PIVOT_EPS, ZERO, kernel_context


def invert(matrix: Matrix, pivot_tolerance: Decimal = PIVOT_EPS) -> Matrix:
    """
    Обращение квадратной матрицы (Gauss-Jordan с partial pivoting).

    Args:
        matrix: Квадратная матрица n × n
        pivot_tolerance: Минимальный допустимый |pivot| (default: 1e-10)

    Returns:
        A⁻¹ (n × n); пустая матрица для пустого входа

    Raises:
        DimensionMismatchError: Если матрица не квадратная
        SingularMatrixError: Если ни один pivot в столбце не превышает порог

    Examples:
        >>> inv = invert(Matrix([[2, 1], [5, 3]]))
        >>> [[int(v) for v in row] for row in inv.rows]
        [[3, -1], [-5, 2]]
    """
    if not matrix.is_square:
        raise DimensionMismatchError(
            f"cannot invert non-square {matrix.n_rows}x{matrix.n_cols} matrix"
        )

    n = matrix.n_rows
    if n == 0:
        return matrix

    # Расширенная матрица [A | I], локальная рабочая копия
    aug: list[list[Decimal]] = [
        list(row) + [ONE if i == j else ZERO for j in range(n)]
        for i, row in enumerate(matrix.rows)
    ]

    with kernel_context():
        for col in range(n):
            max_row = col
            max_val = abs(aug[col][col])
            for row in range(col + 1, n):
                val = abs(aug[row][col])
                if val > max_val:
                    max_val = val
                    max_row = row

            if max_val < pivot_tolerance:
                raise SingularMatrixError(
                    f"Singular matrix cannot be inverted: max pivot {max_val} "
                    f"in column {col} is below tolerance {pivot_tolerance}"
                )

            if max_row != col:
                aug[col], aug[max_row] = aug[max_row], aug[col]

            pivot = aug[col][col]
            pivot_row = [cell / pivot for cell in aug[col]]
            aug[col] = pivot_row

            for row in range(n):
                if row == col:
                    continue
                factor = aug[row][col]
                if factor.is_zero():
                    continue
                aug[row] = [cell - factor * pv for cell, pv in zip(aug[row], pivot_row)]

    return Matrix._trusted(tuple(tuple(row[n:]) for row in aug))

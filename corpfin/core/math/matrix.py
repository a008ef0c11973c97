"""
Matrix — Плотная неизменяемая матрица над Decimal

Row-major сетка Decimal значений с фиксированной формой (rows × cols).
Операции возвращают новые матрицы и никогда не мутируют операнды.

Размеры матриц ограничены десятками активов, поэтому умножение реализовано
прямым тройным циклом без оптимизаций.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Форма фиксируется при создании, рваные строки отклоняются
2. Несогласованные размерности → DimensionMismatchError (без неявного ресайза)
3. Все элементы являются конечными Decimal (float конвертируется через str)
"""

from decimal import Decimal
from typing import Iterable, Sequence

from corpfin.core.errors import DimensionMismatchError
from corpfin.core.math.numerical_safeguards import (
    ONE,
    ZERO,
    kernel_context,
    to_decimal,
)

Number = Decimal | int | float | str
Rows = tuple[tuple[Decimal, ...], ...]


# =============================================================================
# VECTOR HELPERS
# =============================================================================


def dot(a: Sequence[Decimal], b: Sequence[Decimal]) -> Decimal:
    """
    Скалярное произведение двух векторов одинаковой длины.

    Raises:
        DimensionMismatchError: Если длины различаются
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"dot product of vectors with lengths {len(a)} and {len(b)}",
            field="vector",
        )
    with kernel_context():
        return sum((x * y for x, y in zip(a, b)), ZERO)


def vector_sum(values: Iterable[Decimal]) -> Decimal:
    """Сумма элементов вектора в KERNEL_CONTEXT."""
    with kernel_context():
        return sum(values, ZERO)


# =============================================================================
# MATRIX
# =============================================================================


class Matrix:
    """
    Неизменяемая плотная матрица Decimal значений.

    Examples:
        >>> a = Matrix([[1, 2], [3, 4]])
        >>> a.shape
        (2, 2)
        >>> (a @ Matrix.identity(2)) == a
        True
    """

    __slots__ = ("_rows", "_n_rows", "_n_cols")

    def __init__(self, rows: Iterable[Iterable[Number]]):
        converted = tuple(
            tuple(to_decimal(value, name=f"matrix[{i}][{j}]") for j, value in enumerate(row))
            for i, row in enumerate(rows)
        )
        n_cols = len(converted[0]) if converted else 0
        for i, row in enumerate(converted):
            if len(row) != n_cols:
                raise DimensionMismatchError(
                    f"row {i} has {len(row)} columns, expected {n_cols}"
                )
        self._set(converted, n_cols)

    def _set(self, rows: Rows, n_cols: int) -> None:
        self._rows = rows
        self._n_rows = len(rows)
        self._n_cols = n_cols

    @classmethod
    def _trusted(cls, rows: Rows) -> "Matrix":
        """Создание из уже проверенных Decimal строк (без повторной конверсии)."""
        matrix = cls.__new__(cls)
        matrix._set(rows, len(rows[0]) if rows else 0)
        return matrix

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def zeros(cls, n_rows: int, n_cols: int) -> "Matrix":
        """Нулевая матрица n_rows × n_cols."""
        return cls._trusted(tuple(tuple(ZERO for _ in range(n_cols)) for _ in range(n_rows)))

    @classmethod
    def identity(cls, n: int) -> "Matrix":
        """Единичная матрица n × n."""
        return cls._trusted(
            tuple(tuple(ONE if i == j else ZERO for j in range(n)) for i in range(n))
        )

    @classmethod
    def diag(cls, values: Sequence[Number]) -> "Matrix":
        """Диагональная матрица с заданной диагональю."""
        diagonal = [to_decimal(v, name=f"diag[{i}]") for i, v in enumerate(values)]
        n = len(diagonal)
        return cls._trusted(
            tuple(tuple(diagonal[i] if i == j else ZERO for j in range(n)) for i in range(n))
        )

    @classmethod
    def column(cls, values: Sequence[Number]) -> "Matrix":
        """Вектор-столбец (n × 1)."""
        return cls([[v] for v in values])

    # -------------------------------------------------------------------------
    # Доступ
    # -------------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        return (self._n_rows, self._n_cols)

    @property
    def n_rows(self) -> int:
        return self._n_rows

    @property
    def n_cols(self) -> int:
        return self._n_cols

    @property
    def rows(self) -> Rows:
        return self._rows

    @property
    def is_square(self) -> bool:
        return self._n_rows == self._n_cols

    def __getitem__(self, index: tuple[int, int]) -> Decimal:
        i, j = index
        return self._rows[i][j]

    def row(self, i: int) -> tuple[Decimal, ...]:
        return self._rows[i]

    def diagonal(self) -> tuple[Decimal, ...]:
        """Главная диагональ (min(rows, cols) элементов)."""
        return tuple(self._rows[i][i] for i in range(min(self._n_rows, self._n_cols)))

    def to_lists(self) -> list[list[Decimal]]:
        return [list(row) for row in self._rows]

    def __iter__(self):
        return iter(self._rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and self._rows == other._rows

    def __hash__(self) -> int:
        return hash((self.shape, self._rows))

    def __repr__(self) -> str:
        body = ", ".join("[" + ", ".join(str(v) for v in row) + "]" for row in self._rows)
        return f"Matrix([{body}])"

    # -------------------------------------------------------------------------
    # Алгебра
    # -------------------------------------------------------------------------

    def transpose(self) -> "Matrix":
        """Транспонирование: (m × n) → (n × m)."""
        return Matrix._trusted(
            tuple(
                tuple(self._rows[i][j] for i in range(self._n_rows))
                for j in range(self._n_cols)
            )
        )

    @property
    def T(self) -> "Matrix":
        return self.transpose()

    def multiply(self, other: "Matrix") -> "Matrix":
        """
        Матричное произведение C = A·B, A (m × p), B (p × n) → C (m × n).

        Raises:
            DimensionMismatchError: Если A.cols != B.rows
        """
        if self._n_cols != other._n_rows:
            raise DimensionMismatchError(
                f"cannot multiply {self._n_rows}x{self._n_cols} "
                f"by {other._n_rows}x{other._n_cols}"
            )
        p = self._n_cols
        b = other._rows
        with kernel_context():
            result = tuple(
                tuple(
                    sum((a_row[k] * b[k][j] for k in range(p)), ZERO)
                    for j in range(other._n_cols)
                )
                for a_row in self._rows
            )
        return Matrix._trusted(result)

    def __matmul__(self, other: "Matrix") -> "Matrix":
        return self.multiply(other)

    def mat_vec(self, vector: Sequence[Decimal]) -> tuple[Decimal, ...]:
        """
        Произведение матрицы (m × n) на вектор длины n → вектор длины m.

        Raises:
            DimensionMismatchError: Если длина вектора != числу столбцов
        """
        if len(vector) != self._n_cols:
            raise DimensionMismatchError(
                f"cannot multiply {self._n_rows}x{self._n_cols} matrix "
                f"by vector of length {len(vector)}"
            )
        with kernel_context():
            return tuple(sum((a * v for a, v in zip(row, vector)), ZERO) for row in self._rows)

    def scale(self, scalar: Number) -> "Matrix":
        """Поэлементное умножение на скаляр."""
        s = to_decimal(scalar, name="scalar")
        with kernel_context():
            return Matrix._trusted(tuple(tuple(v * s for v in row) for row in self._rows))

    def add(self, other: "Matrix") -> "Matrix":
        """
        Поэлементная сумма матриц одинаковой формы.

        Raises:
            DimensionMismatchError: Если формы различаются
        """
        if self.shape != other.shape:
            raise DimensionMismatchError(
                f"cannot add {self._n_rows}x{self._n_cols} "
                f"and {other._n_rows}x{other._n_cols}"
            )
        with kernel_context():
            return Matrix._trusted(
                tuple(
                    tuple(x + y for x, y in zip(row_a, row_b))
                    for row_a, row_b in zip(self._rows, other._rows)
                )
            )

    def __add__(self, other: "Matrix") -> "Matrix":
        return self.add(other)

    def is_symmetric(self, tolerance: Decimal = ZERO) -> bool:
        """True если матрица квадратная и |A_ij - A_ji| <= tolerance."""
        if not self.is_square:
            return False
        with kernel_context():
            return all(
                abs(self._rows[i][j] - self._rows[j][i]) <= tolerance
                for i in range(self._n_rows)
                for j in range(i + 1, self._n_rows)
            )

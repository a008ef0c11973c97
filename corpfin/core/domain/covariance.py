"""
CovarianceMatrix — Ковариационная матрица доходностей

Квадратная N×N матрица, симметричная в пределах SYMMETRY_TOLERANCE.
Строки и столбцы упорядочены так же, как список активов, к которому
она прилагается.
"""

from decimal import Decimal
from typing import Sequence

from corpfin.core.errors import InvalidInputError
from corpfin.core.math.matrix import Matrix, dot
from corpfin.core.math.numerical_safeguards import SYMMETRY_TOLERANCE, kernel_context, to_decimal


class CovarianceMatrix(Matrix):
    """
    Проверенная ковариационная матрица.

    Создаётся только через from_rows(), который проверяет форму и симметрию
    и бросает InvalidInputError с полем 'covariance_matrix'.
    """

    __slots__ = ()

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[Decimal]],
        expected_size: int | None = None,
        tolerance: Decimal = SYMMETRY_TOLERANCE,
        field: str = "covariance_matrix",
    ) -> "CovarianceMatrix":
        """
        Построение и валидация ковариационной матрицы.

        Args:
            rows: Строки матрицы (row-major)
            expected_size: Ожидаемое число активов N (если None, берётся len(rows))
            tolerance: Допуск симметрии (default: 1e-6)
            field: Имя поля для сообщений об ошибках

        Returns:
            CovarianceMatrix N×N

        Raises:
            InvalidInputError: Если матрица не N×N или не симметрична
        """
        n = len(rows) if expected_size is None else expected_size

        if len(rows) != n:
            raise InvalidInputError(
                field, f"Expected {n}x{n} matrix but got {len(rows)} rows"
            )
        for i, row in enumerate(rows):
            if len(row) != n:
                raise InvalidInputError(
                    field, f"Row {i} has {len(row)} columns, expected {n}"
                )

        converted = tuple(
            tuple(to_decimal(v, name=f"{field}[{i}][{j}]") for j, v in enumerate(row))
            for i, row in enumerate(rows)
        )

        with kernel_context():
            for i in range(n):
                for j in range(i + 1, n):
                    if abs(converted[i][j] - converted[j][i]) > tolerance:
                        raise InvalidInputError(
                            field,
                            f"Not symmetric: [{i},{j}]={converted[i][j]} "
                            f"!= [{j},{i}]={converted[j][i]}",
                        )

        return cls._trusted(converted)

    @property
    def size(self) -> int:
        """Число активов N."""
        return self.n_rows

    def variance(self, weights: Sequence[Decimal]) -> Decimal:
        """Дисперсия портфеля wᵗΣw."""
        return dot(weights, self.mat_vec(weights))

"""
Errors — Таксономия ошибок калькуляторов

Все ошибки валидации входа наследуются от InvalidInputError (и ValueError),
поэтому вызывающий код может ловить их как обычные ValueError.

Иерархия:
- CorpFinanceError
  - InvalidInputError (field, reason)
    - InsufficientDataError
    - DimensionMismatchError
  - FinancialImpossibilityError
    - SingularMatrixError
  - DivisionByZeroError (context)
"""


class CorpFinanceError(Exception):
    """Базовая ошибка библиотеки."""


class InvalidInputError(CorpFinanceError, ValueError):
    """
    Некорректный вход: неверная форма, диапазон или ссылка.

    Attributes:
        field: Имя поля (например, 'covariance_matrix' или 'views[0].confidence')
        reason: Человекочитаемая причина
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid input for '{field}': {reason}")


class InsufficientDataError(InvalidInputError):
    """Недостаточно данных для расчёта (например, пустой список активов)."""

    def __init__(self, reason: str, field: str = "assets"):
        super().__init__(field, reason)


class DimensionMismatchError(InvalidInputError):
    """Размерности матриц/векторов не согласованы для операции."""

    def __init__(self, reason: str, field: str = "matrix"):
        super().__init__(field, reason)


class FinancialImpossibilityError(CorpFinanceError):
    """Вычисление невозможно по математическим причинам."""


class SingularMatrixError(FinancialImpossibilityError):
    """Матрица вырождена: ни один pivot не превышает численный порог."""


class DivisionByZeroError(CorpFinanceError, ZeroDivisionError):
    """
    Производный знаменатель точно равен нулю.

    Attributes:
        context: Где именно возник нулевой знаменатель
    """

    def __init__(self, context: str):
        self.context = context
        super().__init__(f"Division by zero: {context}")

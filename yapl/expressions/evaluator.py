"""
Вычислитель выражений.

Проходит по AST выражений и вычисляет их значения в заданном скоупе.
Все операции тотальны: обращение к несуществующей переменной даёт
UNDEFINED, а несравнимые значения в упорядочивающих сравнениях дают false.
"""

from __future__ import annotations

import operator
from typing import Any, Callable, Dict, cast

from .model import (
    BinaryExpression,
    CheckExpression,
    CheckKind,
    CompareExpression,
    DefaultExpression,
    Expression,
    ExpressionType,
    GroupExpression,
    ListExpression,
    LiteralExpression,
    MapExpression,
    PathExpression,
)
from ..scope import Scope
from ..types import UNDEFINED


class EvaluationError(Exception):
    """Ошибка при вычислении выражения (неизвестный тип узла)."""
    pass


_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}


def is_truthy(value: Any) -> bool:
    """
    Истинность значения в условиях.

    Ложны: UNDEFINED, null, false, 0, "", пустые список и словарь.
    Всё остальное истинно.
    """
    return bool(value)


def is_empty(value: Any) -> bool:
    """Проверка `is empty`: неопределённое, null и пустые коллекции/строки."""
    if value is UNDEFINED or value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def values_equal(left: Any, right: Any) -> bool:
    """
    Равенство для операторов == и !=.

    UNDEFINED равно только самому себе; булевы значения не равны числам
    (true != 1), остальное сравнивается по правилам Python.
    """
    if left is UNDEFINED or right is UNDEFINED:
        return left is right
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return bool(left == right)


def compare_ordered(op: str, left: Any, right: Any) -> bool:
    """
    Упорядочивающее сравнение (>, <, >=, <=).

    Числа сравниваются численно, строки лексикографически.
    Сравнение несовместимых типов (число со строкой, что угодно
    с UNDEFINED или null, булевы значения с числами) даёт false.
    """
    if left is UNDEFINED or right is UNDEFINED or left is None or right is None:
        return False
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    try:
        return bool(_ORDERING[op](left, right))
    except TypeError:
        return False


class ExpressionEvaluator:
    """
    Вычислитель выражений.

    Принимает AST выражения и скоуп, возвращает значение.
    """

    def __init__(self, scope: Scope):
        """
        Инициализирует вычислитель со скоупом.

        Args:
            scope: Скоуп с переменными текущей точки шаблона
        """
        self.scope = scope

    def evaluate(self, expression: Expression) -> Any:
        """
        Вычисляет значение выражения.

        Args:
            expression: Корневой узел AST выражения

        Returns:
            Значение (строка, число, bool, None, список, словарь или UNDEFINED)

        Raises:
            EvaluationError: При неизвестном типе выражения
        """
        expression_type = expression.get_type()

        if expression_type == ExpressionType.LITERAL:
            return cast(LiteralExpression, expression).value
        elif expression_type == ExpressionType.PATH:
            return self.scope.lookup(cast(PathExpression, expression).path.segments)
        elif expression_type == ExpressionType.LIST:
            return [self.evaluate(item) for item in cast(ListExpression, expression).items]
        elif expression_type == ExpressionType.MAP:
            return self.evaluate_map(cast(MapExpression, expression))
        elif expression_type == ExpressionType.DEFAULT:
            return self._evaluate_default(cast(DefaultExpression, expression))
        elif expression_type == ExpressionType.CHECK:
            return self._evaluate_check(cast(CheckExpression, expression))
        elif expression_type == ExpressionType.COMPARE:
            return self._evaluate_compare(cast(CompareExpression, expression))
        elif expression_type == ExpressionType.GROUP:
            return self.evaluate(cast(GroupExpression, expression).expression)
        elif expression_type == ExpressionType.AND:
            return self._evaluate_and(cast(BinaryExpression, expression))
        elif expression_type == ExpressionType.OR:
            return self._evaluate_or(cast(BinaryExpression, expression))
        else:
            raise EvaluationError(f"Unknown expression type: {expression_type}")

    def evaluate_condition(self, expression: Expression) -> bool:
        """Вычисляет выражение как условие {% if %}."""
        return is_truthy(self.evaluate(expression))

    def evaluate_map(self, expression: MapExpression) -> Dict[str, Any]:
        """Вычисляет литерал объекта, сохраняя порядок ключей."""
        return {key: self.evaluate(value) for key, value in expression.entries}

    def _evaluate_default(self, expression: DefaultExpression) -> Any:
        """
        Вычисляет expr | default(fallback).

        Fallback вычисляется только если значение не определено;
        null, false, 0 и "" считаются определёнными.
        """
        value = self.evaluate(expression.expression)
        if value is UNDEFINED:
            return self.evaluate(expression.fallback)
        return value

    def _evaluate_check(self, expression: CheckExpression) -> bool:
        """Вычисляет is [not] defined / is [not] empty."""
        value = self.evaluate(expression.expression)
        if expression.check == CheckKind.DEFINED:
            result = value is not UNDEFINED
        else:
            result = is_empty(value)
        return not result if expression.negated else result

    def _evaluate_compare(self, expression: CompareExpression) -> bool:
        left = self.evaluate(expression.left)
        right = self.evaluate(expression.right)

        if expression.operator == "==":
            return values_equal(left, right)
        if expression.operator == "!=":
            return not values_equal(left, right)
        return compare_ordered(expression.operator, left, right)

    def _evaluate_and(self, expression: BinaryExpression) -> bool:
        """
        Вычисляет логическое И: left and right

        Использует короткое вычисление (short-circuit evaluation).
        """
        if not is_truthy(self.evaluate(expression.left)):
            return False  # Короткое вычисление

        return is_truthy(self.evaluate(expression.right))

    def _evaluate_or(self, expression: BinaryExpression) -> bool:
        """
        Вычисляет логическое ИЛИ: left or right

        Использует короткое вычисление (short-circuit evaluation).
        """
        if is_truthy(self.evaluate(expression.left)):
            return True  # Короткое вычисление

        return is_truthy(self.evaluate(expression.right))


def evaluate_expression_string(expression_str: str, scope: Scope) -> Any:
    """
    Удобная функция для вычисления выражения из строки.

    Args:
        expression_str: Строка выражения
        scope: Скоуп с переменными

    Returns:
        Результат вычисления выражения

    Raises:
        ParseError: При ошибке парсинга
        EvaluationError: При ошибке вычисления
    """
    from .parser import ExpressionParser

    parser = ExpressionParser()
    ast = parser.parse(expression_str)

    evaluator = ExpressionEvaluator(scope)
    return evaluator.evaluate(ast)


__all__ = [
    "ExpressionEvaluator",
    "EvaluationError",
    "evaluate_expression_string",
    "is_truthy",
    "is_empty",
    "values_equal",
    "compare_ordered",
]

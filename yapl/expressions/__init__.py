"""
Язык выражений шаблонов: лексер, модель, парсер и вычислитель.
"""

from __future__ import annotations

from .evaluator import ExpressionEvaluator, EvaluationError, evaluate_expression_string, is_truthy
from .model import Expression, PropertyPath
from .parser import ExpressionParser, ParseError

__all__ = [
    "Expression",
    "PropertyPath",
    "ExpressionParser",
    "ParseError",
    "ExpressionEvaluator",
    "EvaluationError",
    "evaluate_expression_string",
    "is_truthy",
]

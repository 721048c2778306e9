"""
Модели данных для выражений.

Содержит классы для представления выражений, используемых в условиях
{% if %}, итерируемых значениях {% for %}, параметрах {% include ... with %}
и значениях по умолчанию в {{ x | default(...) }}.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union

# Сегмент пути: имя ключа или целочисленный индекс
PathSegment = Union[str, int]


class ExpressionType(Enum):
    """Типы выражений в системе."""
    LITERAL = "literal"
    PATH = "path"
    LIST = "list"
    MAP = "map"
    DEFAULT = "default"
    CHECK = "check"
    COMPARE = "compare"
    AND = "and"
    OR = "or"
    GROUP = "group"  # для явной группировки в скобках


class CheckKind(Enum):
    """Проверки, доступные через оператор `is`."""
    DEFINED = "defined"
    EMPTY = "empty"


@dataclass(frozen=True)
class Expression(ABC):
    """Базовый абстрактный класс для всех выражений."""

    @abstractmethod
    def get_type(self) -> ExpressionType:
        """Возвращает тип выражения."""
        pass

    def __str__(self) -> str:
        """Строковое представление выражения."""
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        """Внутренний метод для создания строкового представления."""
        pass


@dataclass(frozen=True)
class PropertyPath:
    """
    Путь к значению в скоупе: user.name, items.0, items[1], config["key"].

    Первый сегмент всегда имя переменной верхнего уровня.
    """
    segments: Tuple[PathSegment, ...]

    @property
    def root(self) -> str:
        return str(self.segments[0])

    def __str__(self) -> str:
        parts = [str(self.segments[0])]
        for segment in self.segments[1:]:
            parts.append(f".{segment}")
        return "".join(parts)


@dataclass(frozen=True)
class LiteralExpression(Expression):
    """Литерал: строка, число, true, false или null."""
    value: Any

    def get_type(self) -> ExpressionType:
        return ExpressionType.LITERAL

    def _to_string(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return '"' + self.value.replace('\\', '\\\\').replace('"', '\\"') + '"'
        return repr(self.value)


@dataclass(frozen=True)
class PathExpression(Expression):
    """Ссылка на переменную скоупа."""
    path: PropertyPath

    def get_type(self) -> ExpressionType:
        return ExpressionType.PATH

    def _to_string(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class ListExpression(Expression):
    """Литерал списка: [a, "b", 3]"""
    items: Tuple[Expression, ...]

    def get_type(self) -> ExpressionType:
        return ExpressionType.LIST

    def _to_string(self) -> str:
        return "[" + ", ".join(str(item) for item in self.items) + "]"


@dataclass(frozen=True)
class MapExpression(Expression):
    """
    Литерал объекта: { key: expr, "other": expr }

    Порядок ключей сохраняется.
    """
    entries: Tuple[Tuple[str, Expression], ...]

    def get_type(self) -> ExpressionType:
        return ExpressionType.MAP

    def _to_string(self) -> str:
        return "{" + ", ".join(f"{key}: {value}" for key, value in self.entries) + "}"


@dataclass(frozen=True)
class DefaultExpression(Expression):
    """
    Значение по умолчанию: expr | default(fallback)

    Fallback используется только если expr не определено.
    """
    expression: Expression
    fallback: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.DEFAULT

    def _to_string(self) -> str:
        return f"{self.expression} | default({self.fallback})"


@dataclass(frozen=True)
class CheckExpression(Expression):
    """Проверка: expr is [not] defined | expr is [not] empty"""
    expression: Expression
    check: CheckKind
    negated: bool = False

    def get_type(self) -> ExpressionType:
        return ExpressionType.CHECK

    def _to_string(self) -> str:
        negation = "not " if self.negated else ""
        return f"{self.expression} is {negation}{self.check.value}"


@dataclass(frozen=True)
class CompareExpression(Expression):
    """
    Сравнение: left op right

    Поддерживаемые операторы: ==, !=, >=, <=, >, <
    """
    left: Expression
    operator: str
    right: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.COMPARE

    def _to_string(self) -> str:
        return f"{self.left} {self.operator} {self.right}"


@dataclass(frozen=True)
class GroupExpression(Expression):
    """
    Группа в скобках: (expression)

    Используется для явной группировки и изменения приоритета операторов.
    """
    expression: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.GROUP

    def _to_string(self) -> str:
        return f"({self.expression})"


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Логическая операция: left op right

    Поддерживаемые операторы:
    - and: истинно, если оба операнда истинны
    - or: истинно, если хотя бы один операнд истинен
    """
    left: Expression
    right: Expression
    operator: ExpressionType  # AND или OR

    def get_type(self) -> ExpressionType:
        return self.operator

    def _to_string(self) -> str:
        op_str = "and" if self.operator == ExpressionType.AND else "or"
        return f"{self.left} {op_str} {self.right}"


__all__ = [
    "PathSegment",
    "PropertyPath",
    "Expression",
    "ExpressionType",
    "CheckKind",
    "LiteralExpression",
    "PathExpression",
    "ListExpression",
    "MapExpression",
    "DefaultExpression",
    "CheckExpression",
    "CompareExpression",
    "GroupExpression",
    "BinaryExpression",
]

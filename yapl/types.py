"""
Shared value types of the engine.

Template variables are plain Python data: str, int/float, bool, None,
lists and mappings. A missing value is represented by the UNDEFINED
sentinel, which is distinct from None, False, 0 and "".
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping


class Undefined:
    """Result of resolving a path that does not exist in the scope."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self):
        return (Undefined, ())


UNDEFINED = Undefined()


def is_undefined(value: Any) -> bool:
    return value is UNDEFINED


def is_list(value: Any) -> bool:
    """Lists and tuples are the only iterable values for `for` loops."""
    return isinstance(value, (list, tuple))


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def value_type_name(value: Any) -> str:
    """Имя типа значения в терминах языка шаблонов (для сообщений об ошибках)."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if is_list(value):
        return "array"
    return "object"


def to_output(value: Any) -> str:
    """
    Приводит значение к строке для вывода в шаблон.

    Форматирование не зависит от локали: булевы значения выводятся как
    true/false, целые числа с плавающей точкой без дробной части,
    списки и словари в виде компактного JSON.
    """
    if value is UNDEFINED or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if is_list(value) or is_mapping(value):
        return json.dumps(_plain(value), ensure_ascii=False, separators=(",", ":"))
    return str(value)


def _plain(value: Any) -> Any:
    if is_mapping(value):
        return {str(k): _plain(v) for k, v in value.items()}
    if is_list(value):
        return [_plain(v) for v in value]
    if value is UNDEFINED:
        return None
    return value


@dataclass(frozen=True)
class RenderResult:
    """Результат рендеринга: итоговый текст и список задействованных шаблонов."""
    content: str
    used_files: List[str] = field(default_factory=list)


__all__ = [
    "Undefined",
    "UNDEFINED",
    "is_undefined",
    "is_list",
    "is_mapping",
    "value_type_name",
    "to_output",
    "RenderResult",
]

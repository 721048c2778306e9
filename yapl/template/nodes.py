"""
AST-узлы шаблона.

Определяет иерархию неизменяемых классов узлов для представления
структуры шаблонов. Дерево создаётся один раз на шаблон и больше не меняется.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..expressions.model import Expression, PropertyPath


@dataclass(frozen=True)
class TemplateNode:
    """Базовый класс для всех узлов AST шаблона."""
    pass


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """
    Обычный текстовый контент в шаблоне.

    Правила пробелов (кроме dedent) уже применены парсером.
    """
    text: str


@dataclass(frozen=True)
class VariableNode(TemplateNode):
    """Вывод переменной {{ path | default(expr) }}."""
    path: PropertyPath
    default_expr: Optional[Expression] = None
    trim_left: bool = False
    trim_right: bool = False


@dataclass(frozen=True)
class SuperCallNode(TemplateNode):
    """
    {{ super() }} внутри блока.

    Подставляется содержимым того же блока из предыдущих слоёв композиции.
    """
    pass


@dataclass(frozen=True)
class IfBranch:
    """Ветка условного блока; condition == None означает else."""
    condition: Optional[Expression]
    body: List[TemplateNode]


@dataclass(frozen=True)
class IfNode(TemplateNode):
    """
    Условный блок {% if %}...{% elif %}...{% else %}...{% endif %}.

    Ветки проверяются сверху вниз, рендерится тело первой истинной.
    """
    branches: List[IfBranch]


@dataclass(frozen=True)
class ForNode(TemplateNode):
    """Цикл {% for var in iterable %}...{% endfor %}."""
    iter_var: str
    iterable: Expression
    body: List[TemplateNode]


@dataclass(frozen=True)
class BlockNode(TemplateNode):
    """Именованный переопределяемый блок {% block name %}...{% endblock %}."""
    name: str
    body: List[TemplateNode]


@dataclass(frozen=True)
class ExtendsNode(TemplateNode):
    """{% extends "parent" %}: допускается только первым узлом шаблона."""
    parent_ref: str


@dataclass(frozen=True)
class IncludeNode(TemplateNode):
    """{% include "ref" with { key: expr } %}"""
    template_ref: str
    with_vars: Optional[Tuple[Tuple[str, Expression], ...]] = None


@dataclass(frozen=True)
class MixinNode(TemplateNode):
    """{% mixin "a", "b" %}: шаблоны, чьи блоки вмешиваются в композицию."""
    refs: List[str]


# Алиас для списка узлов (AST)
TemplateAST = List[TemplateNode]


@dataclass(frozen=True)
class ParsedTemplate:
    """
    Результат парсинга одного шаблона.

    Помимо дерева содержит сведения, нужные композиции: ссылку extends,
    список mixin и все определения блоков (включая вложенные).
    """
    name: str
    nodes: TemplateAST
    extends: Optional[str] = None
    mixins: List[str] = field(default_factory=list)
    blocks: Dict[str, BlockNode] = field(default_factory=dict)


__all__ = [
    "TemplateNode",
    "TextNode",
    "VariableNode",
    "SuperCallNode",
    "IfBranch",
    "IfNode",
    "ForNode",
    "BlockNode",
    "ExtendsNode",
    "IncludeNode",
    "MixinNode",
    "TemplateAST",
    "ParsedTemplate",
]

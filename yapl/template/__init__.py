"""
Шаблонизатор YAPL: лексер, парсер, композиция и рендеринг.
"""

from __future__ import annotations

from .composer import ComposedTemplate, Layer, RenderState, TemplateComposer
from .lexer import TemplateLexer, Token, TokenType, tokenize_template
from .nodes import ParsedTemplate, TemplateAST
from .parser import TemplateParser, parse_template
from .renderer import TemplateRenderer

__all__ = [
    "TemplateLexer",
    "Token",
    "TokenType",
    "tokenize_template",
    "TemplateParser",
    "parse_template",
    "ParsedTemplate",
    "TemplateAST",
    "TemplateComposer",
    "ComposedTemplate",
    "Layer",
    "RenderState",
    "TemplateRenderer",
]

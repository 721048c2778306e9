"""
Парсер шаблонов YAPL.

Преобразует поток токенов лексера в AST с поддержкой наследования
(extends/block/super), миксинов, включений, условий и циклов,
проверяя структурные правила:
- extends допускается только первым значимым элементом шаблона;
- block/if/for должны быть закрыты до конца шаблона;
- имена блоков состоят из [A-Za-z0-9_:-];
- в {{ }} поддерживается только фильтр default.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .lexer import TemplateLexer, Token, TokenType
from .nodes import (
    BlockNode, ExtendsNode, ForNode, IfBranch, IfNode, IncludeNode, MixinNode,
    ParsedTemplate, SuperCallNode, TemplateNode, TextNode, VariableNode,
)
from .whitespace import WhitespaceOptions, process_text
from ..errors import TemplateParseError
from ..expressions.parser import ExpressionParser, ParseError

logger = logging.getLogger(__name__)

BLOCK_NAME_RE = re.compile(r"^[A-Za-z0-9_:-]+$")
_BLOCK_DIRECTIVE_RE = re.compile(r"^\s*(endblock|block)(?:\s+(\S+))?\s*$")

# Ключевые слова, которые закрывают или продолжают конструкцию
_CONTINUATION_KEYWORDS = {"elif", "else", "endif", "endfor", "endblock"}


@dataclass(frozen=True)
class _Directive:
    """Прочитанная директива, завершившая тело конструкции."""
    keyword: str
    raw: Token
    open_token: Token


@dataclass(frozen=True)
class _Frame:
    """Контекст разбираемого тела."""
    stop: Tuple[str, ...] = ()
    top_level: bool = False
    in_block: bool = False


class TemplateParser:
    """
    Рекурсивный парсер для шаблонов.

    Читает токены лексера с просмотром на один токен вперёд: этого достаточно,
    чтобы применить правила пробелов к тексту между тегами.
    """

    def __init__(self, text: str, name: str = "", whitespace: Optional[WhitespaceOptions] = None):
        self.name = name
        self.whitespace = whitespace or WhitespaceOptions()
        self.lexer = TemplateLexer(text)
        self.expr_parser = ExpressionParser()

        self._stream: Iterator[Token] = self.lexer.iter_tokens()
        self._lookahead: Optional[Token] = None
        self._prev_close: Optional[Token] = None

        self._extends: Optional[str] = None
        self._mixins: Optional[List[str]] = None
        self._blocks: Dict[str, BlockNode] = {}
        self._content_seen = False

    def parse(self) -> ParsedTemplate:
        """
        Парсит весь шаблон.

        Returns:
            ParsedTemplate с деревом и метаданными композиции

        Raises:
            TemplateLexerError: При незакрытом теге
            TemplateParseError: При структурной ошибке
        """
        nodes, _ = self._parse_body(_Frame(top_level=True))

        logger.debug(f"Parsed template '{self.name or '<string>'}' -> {len(nodes)} nodes, {len(self._blocks)} blocks")

        return ParsedTemplate(
            name=self.name,
            nodes=nodes,
            extends=self._extends,
            mixins=list(self._mixins or []),
            blocks=dict(self._blocks),
        )

    # ======= Поток токенов =======

    def _peek(self) -> Token:
        if self._lookahead is None:
            self._lookahead = next(self._stream)
        return self._lookahead

    def _next(self) -> Token:
        token = self._peek()
        self._lookahead = None
        return token

    # ======= Тела конструкций =======

    def _parse_body(self, frame: _Frame, opener: Optional[Token] = None,
                    construct: str = "") -> Tuple[List[TemplateNode], Optional[_Directive]]:
        """
        Парсит последовательность узлов до одной из стоп-директив или конца шаблона.

        Returns:
            Кортеж (узлы, завершившая директива или None на верхнем уровне)
        """
        nodes: List[TemplateNode] = []

        while True:
            token = self._next()

            if token.type == TokenType.EOF:
                if frame.stop:
                    raise self._error(
                        f"Unclosed '{construct}' opened at line {opener.line}, column {opener.column}",
                        opener,
                    )
                return nodes, None

            if token.type == TokenType.TEXT:
                node = self._parse_text(token)
                if node is not None:
                    self._append(nodes, node, frame)
            elif token.type == TokenType.COMMENT:
                # Комментарии отбрасываются, но их флаги `-` влияют на соседний текст
                self._prev_close = token
            elif token.type == TokenType.VAR_OPEN:
                self._append(nodes, self._parse_variable(token, frame), frame)
            elif token.type == TokenType.TAG_OPEN:
                raw = self._next()
                self._prev_close = self._next()

                keyword = self._directive_keyword(raw)
                if keyword in frame.stop:
                    return nodes, _Directive(keyword=keyword, raw=raw, open_token=token)
                if keyword in _CONTINUATION_KEYWORDS:
                    raise self._error(f"Unexpected '{keyword}'", token)

                node = self._parse_directive(keyword, raw, token, frame, nodes)
                if node is not None:
                    self._append(nodes, node, frame)
            else:
                raise self._error(f"Unexpected token {token.type.name}", token)

    def _append(self, nodes: List[TemplateNode], node: TemplateNode, frame: _Frame) -> None:
        nodes.append(node)
        if frame.top_level and not (isinstance(node, TextNode) and not node.text.strip()):
            self._content_seen = True

    def _parse_text(self, token: Token) -> Optional[TextNode]:
        """Парсит текстовый узел, применяя правила пробелов."""
        following = self._peek()
        text = process_text(
            token.value,
            prev_token=self._prev_close,
            next_token=None if following.type == TokenType.EOF else following,
            at_input_start=token.position == 0,
            options=self.whitespace,
        )
        self._prev_close = None
        if not text:
            return None
        return TextNode(text=text)

    # ======= Переменные =======

    def _parse_variable(self, open_token: Token, frame: _Frame) -> TemplateNode:
        """
        Парсит {{ path }}, {{ path | default(expr) }} или {{ super() }}.
        """
        raw = self._next()
        close = self._next()
        self._prev_close = close

        if not raw.value.strip():
            raise self._error("Empty variable tag", open_token)

        try:
            self.expr_parser.reset(raw.value)
            path = self.expr_parser.parse_path()

            if path.segments == ("super",) and self.expr_parser.match_symbol("("):
                if not self.expr_parser.match_symbol(")"):
                    raise ParseError("Expected ')' after 'super('", self.expr_parser.current_token().position)
                self.expr_parser.expect_end()
                if not frame.in_block:
                    raise self._error("super() used outside of a block", open_token)
                return SuperCallNode()

            default_expr = None
            if self.expr_parser.match_symbol("|"):
                default_expr = self.expr_parser.parse_default_call()
            self.expr_parser.expect_end()
        except ParseError as e:
            raise self._expression_error(e, raw)

        return VariableNode(
            path=path,
            default_expr=default_expr,
            trim_left=open_token.left_trim,
            trim_right=close.right_trim,
        )

    # ======= Директивы =======

    def _directive_keyword(self, raw: Token) -> str:
        stripped = raw.value.strip()
        if not stripped:
            raise self._error("Empty directive", raw)
        return re.split(r"[\s(\"']", stripped, maxsplit=1)[0]

    def _begin_directive(self, raw: Token) -> None:
        """Готовит парсер выражений к разбору директивы после ключевого слова."""
        try:
            self.expr_parser.reset(raw.value)
        except ParseError as e:
            raise self._expression_error(e, raw)
        # Ключевое слово (идентификатор или зарезервированное слово)
        self.expr_parser._advance()

    def _parse_directive(self, keyword: str, raw: Token, open_token: Token,
                         frame: _Frame, nodes: List[TemplateNode]) -> Optional[TemplateNode]:
        if keyword == "extends":
            return self._parse_extends(raw, open_token, frame, nodes)
        if keyword == "mixin":
            return self._parse_mixin(raw, open_token, frame)
        if keyword == "block":
            return self._parse_block(raw, open_token, frame)
        if keyword == "if":
            return self._parse_if(raw, open_token, frame)
        if keyword == "for":
            return self._parse_for(raw, open_token, frame)
        if keyword == "include":
            return self._parse_include(raw)
        raise self._error(f"Unknown directive '{keyword}'", open_token)

    def _parse_extends(self, raw: Token, open_token: Token, frame: _Frame,
                       nodes: List[TemplateNode]) -> ExtendsNode:
        """Парсит {% extends "parent" %}."""
        if not frame.top_level or self._extends is not None or self._content_seen:
            raise self._error("extends must be first", open_token)

        try:
            self._begin_directive(raw)
            ref = self.expr_parser.consume_string("Expected quoted template path after 'extends'").value
            self.expr_parser.expect_end()
        except ParseError as e:
            raise self._expression_error(e, raw)

        # Пробельный текст перед extends не является содержимым
        nodes.clear()
        self._extends = ref
        return ExtendsNode(parent_ref=ref)

    def _parse_mixin(self, raw: Token, open_token: Token, frame: _Frame) -> MixinNode:
        """Парсит {% mixin "a", "b" %}."""
        if not frame.top_level:
            raise self._error("mixin must be declared at the top level", open_token)
        if self._mixins is not None:
            raise self._error("duplicate mixin directive", open_token)

        refs: List[str] = []
        try:
            self._begin_directive(raw)
            refs.append(self.expr_parser.consume_string("Expected quoted template path after 'mixin'").value)
            while self.expr_parser.match_symbol(","):
                refs.append(self.expr_parser.consume_string("Expected quoted template path after ','").value)
            self.expr_parser.expect_end()
        except ParseError as e:
            raise self._expression_error(e, raw)

        self._mixins = refs
        return MixinNode(refs=refs)

    def _parse_block(self, raw: Token, open_token: Token, frame: _Frame) -> BlockNode:
        """Парсит {% block name %}...{% endblock [name] %}."""
        name = self._block_name(raw, open_token, required=True)

        body_frame = _Frame(stop=("endblock",), in_block=True)
        body, end = self._parse_body(body_frame, open_token, construct="block")

        end_name = self._block_name(end.raw, end.open_token, required=False)
        if end_name is not None and end_name != name:
            raise self._error(f"mismatched block name: expected '{name}', got '{end_name}'", end.open_token)

        if name in self._blocks:
            raise self._error(f"duplicate block '{name}'", open_token)

        node = BlockNode(name=name, body=body)
        self._blocks[name] = node
        return node

    def _block_name(self, raw: Token, open_token: Token, required: bool) -> Optional[str]:
        match = _BLOCK_DIRECTIVE_RE.match(raw.value)
        if not match:
            raise self._error(f"Invalid block directive '{raw.value.strip()}'", open_token)

        name = match.group(2)
        if name is None:
            if required:
                raise self._error("Missing block name", open_token)
            return None

        if not BLOCK_NAME_RE.match(name):
            raise self._error(f"invalid block name '{name}'", open_token)
        return name

    def _parse_if(self, raw: Token, open_token: Token, frame: _Frame) -> IfNode:
        """
        Парсит {% if %} с цепочкой {% elif %} и необязательным {% else %}.
        """
        branches: List[IfBranch] = []
        condition = self._parse_condition(raw, "if")

        body_frame = _Frame(stop=("elif", "else", "endif"), in_block=frame.in_block)
        while True:
            body, end = self._parse_body(body_frame, open_token, construct="if")
            branches.append(IfBranch(condition=condition, body=body))

            if end.keyword == "endif":
                self._expect_bare(end)
                break
            if end.keyword == "elif":
                condition = self._parse_condition(end.raw, "elif")
                continue

            # else: дальше допустим только endif
            self._expect_bare(end)
            else_frame = _Frame(stop=("endif",), in_block=frame.in_block)
            body, end = self._parse_body(else_frame, open_token, construct="if")
            self._expect_bare(end)
            branches.append(IfBranch(condition=None, body=body))
            break

        return IfNode(branches=branches)

    def _parse_condition(self, raw: Token, keyword: str):
        try:
            self._begin_directive(raw)
            if self.expr_parser.is_at_end():
                raise ParseError(f"Missing condition in {keyword} directive", self.expr_parser.current_token().position)
            condition = self.expr_parser.parse_expression()
            self.expr_parser.expect_end()
        except ParseError as e:
            raise self._expression_error(e, raw)
        return condition

    def _parse_for(self, raw: Token, open_token: Token, frame: _Frame) -> ForNode:
        """Парсит {% for var in iterable %}...{% endfor %}."""
        try:
            self._begin_directive(raw)
            iter_var = self.expr_parser.consume_identifier("Expected loop variable after 'for'").value
            if not self.expr_parser.match_keyword("in"):
                raise ParseError("Expected 'in' after loop variable", self.expr_parser.current_token().position)
            iterable = self.expr_parser.parse_expression()
            self.expr_parser.expect_end()
        except ParseError as e:
            raise self._expression_error(e, raw)

        body_frame = _Frame(stop=("endfor",), in_block=frame.in_block)
        body, end = self._parse_body(body_frame, open_token, construct="for")
        self._expect_bare(end)

        return ForNode(iter_var=iter_var, iterable=iterable, body=body)

    def _parse_include(self, raw: Token) -> IncludeNode:
        """Парсит {% include "ref" [with { key: expr, ... }] %}."""
        try:
            self._begin_directive(raw)
            ref = self.expr_parser.consume_string("Expected quoted template path after 'include'").value
            with_vars = None
            if self.expr_parser.match_keyword("with"):
                with_vars = self.expr_parser.parse_map_literal().entries
            self.expr_parser.expect_end()
        except ParseError as e:
            raise self._expression_error(e, raw)

        return IncludeNode(template_ref=ref, with_vars=with_vars)

    def _expect_bare(self, directive: _Directive) -> None:
        """endif/else/endfor не принимают аргументов."""
        if directive.raw.value.strip() != directive.keyword:
            raise self._error(f"Unexpected arguments in '{directive.keyword}'", directive.open_token)

    # ======= Ошибки =======

    def _error(self, message: str, token: Token) -> TemplateParseError:
        return TemplateParseError(message, token.line, token.column, self.name)

    def _expression_error(self, error: ParseError, raw: Token) -> TemplateParseError:
        line, column = self.lexer.location(raw.position + error.position)
        return TemplateParseError(error.message, line, column, self.name)


def parse_template(text: str, name: str = "", whitespace: Optional[WhitespaceOptions] = None) -> ParsedTemplate:
    """
    Удобная функция для парсинга шаблона.

    Args:
        text: Исходный текст шаблона
        name: Имя шаблона для диагностики
        whitespace: Настройки пробелов

    Returns:
        ParsedTemplate
    """
    return TemplateParser(text, name, whitespace).parse()


__all__ = ["TemplateParser", "parse_template", "BLOCK_NAME_RE"]

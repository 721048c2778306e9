"""
Парсер выражений с рекурсивным спуском.

Строит абстрактное синтаксическое дерево (AST) из последовательности токенов.
Поддерживает приоритеты операторов и группировку в скобках.

Грамматика:
expression  → or_expr
or_expr     → and_expr ("or" and_expr)*
and_expr    → comparison ("and" comparison)*
comparison  → check (COMPARE_OP check)?
check       → filtered ("is" "not"? ("defined" | "empty"))?
filtered    → primary ("|" "default" "(" expression ")")?
primary     → STRING | NUMBER | "true" | "false" | "null"
            | path | list | map | "(" expression ")"
path        → IDENTIFIER ("." (IDENTIFIER | NUMBER) | "[" (NUMBER | STRING) "]")*
list        → "[" (expression ("," expression)*)? "]"
map         → "{" (key ":" expression ("," key ":" expression)*)? "}"

Унарный оператор `not` не поддерживается: отрицание доступно только
в проверках `is not defined` и `is not empty`.

Слова is, defined, empty, in, with являются ключевыми только внутри своих
конструкций; в начале пути они читаются как имена переменных.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from .lexer import ExpressionLexer, ExpressionLexError, Token
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
    PathSegment,
    PropertyPath,
)

COMPARE_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")

# Единственный поддерживаемый фильтр
DEFAULT_FILTER = "default"


class ParseError(Exception):
    """Ошибка парсинга выражения."""

    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"Parse error at position {position}: {message}")


class ExpressionParser:
    """
    Парсер выражений с рекурсивным спуском.

    Используется двумя способами:
    - parse(text) разбирает строку целиком как одно выражение;
    - reset(text) + публичные методы позволяют парсеру шаблонов
      разбирать директивы, в которых выражения перемежаются ключевыми словами
      (`for x in items`, `include "a" with {...}`).
    """

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._tokens: List[Token] = []
        self._position = 0

    def parse(self, text: str) -> Expression:
        """
        Парсит строку выражения в AST.

        Args:
            text: Строка выражения

        Returns:
            Корневой узел AST

        Raises:
            ParseError: При синтаксической или лексической ошибке
        """
        self.reset(text)

        if self.is_at_end():
            raise ParseError("Empty expression", 0)

        result = self.parse_expression()
        self.expect_end()
        return result

    def reset(self, text: str) -> None:
        """Токенизирует текст и устанавливает позицию на первый токен."""
        try:
            self._tokens = self.lexer.tokenize(text)
        except ExpressionLexError as e:
            raise ParseError(e.message, e.position)
        self._position = 0

    # ---------------------------- Выражения ---------------------------- #

    def parse_expression(self) -> Expression:
        """Парсит полное выражение (начальный символ грамматики)."""
        return self._parse_or_expression()

    def _parse_or_expression(self) -> Expression:
        """Парсит выражение с оператором or (низший приоритет)."""
        left = self._parse_and_expression()

        while self.match_keyword("or"):
            right = self._parse_and_expression()
            left = BinaryExpression(left=left, right=right, operator=ExpressionType.OR)

        return left

    def _parse_and_expression(self) -> Expression:
        """Парсит выражение с оператором and (средний приоритет)."""
        left = self._parse_comparison()

        while self.match_keyword("and"):
            right = self._parse_comparison()
            left = BinaryExpression(left=left, right=right, operator=ExpressionType.AND)

        return left

    def _parse_comparison(self) -> Expression:
        """Парсит сравнение. Цепочки сравнений (a < b < c) не допускаются."""
        left = self._parse_check()

        current = self.current_token()
        if current.type == 'OPERATOR' and current.value in COMPARE_OPERATORS:
            self._advance()
            right = self._parse_check()
            left = CompareExpression(left=left, operator=current.value, right=right)

            following = self.current_token()
            if following.type == 'OPERATOR':
                raise ParseError("Chained comparisons are not supported", following.position)

        return left

    def _parse_check(self) -> Expression:
        """Парсит проверку `is [not] defined` / `is [not] empty`."""
        expression = self._parse_filtered()

        if not self.match_keyword("is"):
            return expression

        negated = self.match_keyword("not")
        current = self.current_token()
        if self.match_keyword("defined"):
            return CheckExpression(expression=expression, check=CheckKind.DEFINED, negated=negated)
        if self.match_keyword("empty"):
            return CheckExpression(expression=expression, check=CheckKind.EMPTY, negated=negated)

        raise ParseError(f"Expected 'defined' or 'empty' after 'is', got '{current.value}'", current.position)

    def _parse_filtered(self) -> Expression:
        """Парсит необязательный фильтр `| default(...)`."""
        expression = self._parse_primary()

        if self.match_symbol("|"):
            expression = DefaultExpression(expression=expression, fallback=self.parse_default_call())
            following = self.current_token()
            if following.type == 'SYMBOL' and following.value == '|':
                raise ParseError("Only one filter is allowed", following.position)

        return expression

    def parse_default_call(self) -> Expression:
        """
        Парсит вызов фильтра после символа `|`: default(expression).

        Любое другое имя фильтра является ошибкой.
        """
        name_token = self.current_token()
        if name_token.type not in ('IDENTIFIER', 'KEYWORD'):
            raise ParseError("Expected filter name after '|'", name_token.position)
        self._advance()

        if name_token.value != DEFAULT_FILTER:
            raise ParseError(f"unsupported filter '{name_token.value}'", name_token.position)

        self._expect_symbol("(", "Expected '(' after 'default'")
        fallback = self.parse_expression()
        self._expect_symbol(")", "Expected ')' after default value")
        return fallback

    def _parse_primary(self) -> Expression:
        """Парсит первичное выражение (литералы, пути, коллекции, группы)."""
        current = self.current_token()

        # Группировка в скобках
        if self.match_symbol("("):
            expr = self.parse_expression()
            self._expect_symbol(")", "Expected ')' after grouped expression")
            return GroupExpression(expression=expr)

        if self.match_symbol("["):
            return self._parse_list_literal()

        if current.type == 'SYMBOL' and current.value == '{':
            return self.parse_map_literal()

        if current.type == 'STRING':
            self._advance()
            return LiteralExpression(value=current.value)

        if current.type == 'NUMBER':
            self._advance()
            return LiteralExpression(value=_to_number(current.value))

        if current.type == 'KEYWORD':
            if current.value in ('true', 'false'):
                self._advance()
                return LiteralExpression(value=current.value == 'true')
            if current.value == 'null':
                self._advance()
                return LiteralExpression(value=None)
            if current.value == 'not':
                raise ParseError("unsupported operator 'not'", current.position)

        if self._is_name(current):
            return PathExpression(path=self.parse_path())

        # Если ничего не подошло, это ошибка
        if current.type == 'EOF':
            raise ParseError("Unexpected end of expression", current.position)
        raise ParseError(f"Unexpected token '{current.value}'", current.position)

    def parse_path(self) -> PropertyPath:
        """Парсит путь к переменной: name(.key | .0 | [0] | ["key"])*"""
        head = self.consume_identifier("Expected variable name")
        segments: List[PathSegment] = [head.value]

        while True:
            if self.match_symbol("."):
                segment = self.current_token()
                if segment.type in ('IDENTIFIER', 'KEYWORD'):
                    self._advance()
                    segments.append(segment.value)
                elif segment.type == 'NUMBER' and segment.value.isdigit():
                    self._advance()
                    segments.append(int(segment.value))
                else:
                    raise ParseError("Expected property name after '.'", segment.position)
            elif self.match_symbol("["):
                segment = self.current_token()
                if segment.type == 'NUMBER' and segment.value.lstrip('-').isdigit():
                    self._advance()
                    segments.append(int(segment.value))
                elif segment.type == 'STRING':
                    self._advance()
                    segments.append(segment.value)
                else:
                    raise ParseError("Expected index or quoted key inside '[...]'", segment.position)
                self._expect_symbol("]", "Expected ']' after index")
            else:
                break

        return PropertyPath(segments=tuple(segments))

    def _parse_list_literal(self) -> ListExpression:
        """Парсит литерал списка после открывающей скобки."""
        items: List[Expression] = []
        if not self.match_symbol("]"):
            while True:
                items.append(self.parse_expression())
                if self.match_symbol("]"):
                    break
                self._expect_symbol(",", "Expected ',' or ']' in list literal")
        return ListExpression(items=tuple(items))

    def parse_map_literal(self) -> MapExpression:
        """Парсит литерал объекта: { key: expr, "key": expr }"""
        self._expect_symbol("{", "Expected '{'")
        entries: List[Tuple[str, Expression]] = []
        keys = set()

        if not self.match_symbol("}"):
            while True:
                key_token = self.current_token()
                if key_token.type not in ('IDENTIFIER', 'STRING', 'KEYWORD'):
                    raise ParseError("Expected key in object literal", key_token.position)
                self._advance()
                if key_token.value in keys:
                    raise ParseError(f"Duplicate key '{key_token.value}' in object literal", key_token.position)
                keys.add(key_token.value)

                self._expect_symbol(":", f"Expected ':' after key '{key_token.value}'")
                entries.append((key_token.value, self.parse_expression()))

                if self.match_symbol("}"):
                    break
                self._expect_symbol(",", "Expected ',' or '}' in object literal")

        return MapExpression(entries=tuple(entries))

    # Вспомогательные методы для работы с токенами

    def current_token(self) -> Token:
        """Возвращает текущий токен без продвижения позиции."""
        if self._position >= len(self._tokens):
            # Возвращаем EOF если вышли за границы
            end = self._tokens[-1].position if self._tokens else 0
            return Token(type='EOF', value='', position=end)
        return self._tokens[self._position]

    def is_at_end(self) -> bool:
        """Проверяет, достигли ли мы конца токенов."""
        return self.current_token().type == 'EOF'

    def expect_end(self) -> None:
        """Требует, чтобы все токены были потреблены."""
        if not self.is_at_end():
            current = self.current_token()
            raise ParseError(f"Unexpected token '{current.value}'", current.position)

    def _advance(self) -> Token:
        """Продвигает позицию и возвращает предыдущий токен."""
        current = self.current_token()
        if not self.is_at_end():
            self._position += 1
        return current

    def match_keyword(self, keyword: str) -> bool:
        """Проверяет и потребляет ключевое слово."""
        current = self.current_token()
        if current.type == 'KEYWORD' and current.value == keyword:
            self._advance()
            return True
        return False

    def match_symbol(self, symbol: str) -> bool:
        """Проверяет и потребляет символ."""
        current = self.current_token()
        if current.type == 'SYMBOL' and current.value == symbol:
            self._advance()
            return True
        return False

    def _expect_symbol(self, symbol: str, error_message: str) -> None:
        if not self.match_symbol(symbol):
            raise ParseError(error_message, self.current_token().position)

    def _is_name(self, token: Token) -> bool:
        """Может ли токен начинать путь к переменной (is, empty, with и т.п. тоже могут)."""
        if token.type == 'IDENTIFIER':
            return True
        return token.type == 'KEYWORD' and token.value in self.lexer.CONTEXTUAL_KEYWORDS

    def consume_identifier(self, error_message: str) -> Token:
        """Потребляет имя (идентификатор или контекстное ключевое слово) или выбрасывает ошибку."""
        current = self.current_token()
        if self._is_name(current):
            return self._advance()

        raise ParseError(error_message, current.position)

    def consume_string(self, error_message: str) -> Token:
        """Потребляет строковый литерал или выбрасывает ошибку."""
        current = self.current_token()
        if current.type == 'STRING':
            return self._advance()

        raise ParseError(error_message, current.position)

    def peek_identifier(self) -> Optional[str]:
        """Возвращает значение текущего идентификатора или ключевого слова без продвижения."""
        current = self.current_token()
        if current.type in ('IDENTIFIER', 'KEYWORD'):
            return current.value
        return None


def _to_number(text: str):
    if '.' in text:
        return float(text)
    return int(text)


__all__ = ["ExpressionParser", "ParseError", "COMPARE_OPERATORS", "DEFAULT_FILTER"]

"""
Лексер для разбора выражений внутри тегов.

Выполняет токенизацию содержимого {{ ... }} и {% ... %}, разбивая его
на значимые элементы:
- Строковые литералы в одинарных или двойных кавычках
- Числа
- Ключевые слова (and, or, is, not, defined, empty, true, false, null, in, with)
- Идентификаторы (имена переменных, директив, блоков)
- Операторы сравнения и символы пунктуации
- Пробелы (игнорируются)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Token:
    """
    Токен выражения.

    Attributes:
        type: Тип токена (STRING, NUMBER, KEYWORD, IDENTIFIER, OPERATOR, SYMBOL, EOF)
        value: Значение токена (для строк уже без кавычек и экранирования)
        position: Позиция в исходной строке
    """
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"Token({self.type}, '{self.value}', pos={self.position})"


class ExpressionLexError(ValueError):
    """Ошибка токенизации выражения."""

    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"{message} at position {position}")


class ExpressionLexer:
    """
    Лексер для разбиения выражения на токены.

    Строки обрабатываются отдельно от таблицы регулярных выражений:
    обратный слэш экранирует только открывающую кавычку.
    """

    # Спецификация токенов: (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        # Пробелы, табуляция и переводы строк (игнорируем)
        (r'\s+', 'WHITESPACE', True),

        # Числа (проверяем перед идентификаторами и точкой)
        (r'-?\d+\.\d+(?![\w])', 'NUMBER', False),
        (r'-?\d+(?![\w])', 'NUMBER', False),

        # Операторы сравнения (двухсимвольные раньше односимвольных)
        (r'==|!=|>=|<=|>|<', 'OPERATOR', False),

        # Символы
        (r'[()\[\]{},:|.]', 'SYMBOL', False),

        # Идентификаторы (Unicode буквы, цифры, подчёркивания, дефисы внутри имени)
        # Ключевые слова будем определять после захвата
        (r'[^\W\d][\w-]*', 'IDENTIFIER', False),

        # Неизвестный символ (ошибка)
        (r'.', 'UNKNOWN', False),
    ]

    # Ключевые слова для постпроцессинга
    KEYWORDS = {
        'and', 'or', 'is', 'not', 'defined', 'empty',
        'true', 'false', 'null', 'in', 'with',
    }

    # Контекстные ключевые слова: вне своей конструкции служат именами переменных
    CONTEXTUAL_KEYWORDS = frozenset({'is', 'defined', 'empty', 'in', 'with'})

    QUOTES = ('"', "'")

    # После точки в пути допускается только целый индекс: items.0.1
    _INDEX_PATTERN = re.compile(r'\d+')

    def __init__(self):
        # Компилируем регулярные выражения для лучшей производительности
        self._compiled_patterns = [
            (re.compile(pattern), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str) -> List[Token]:
        """
        Разбивает строку на токены.

        Args:
            text: Строка выражения для разбора

        Returns:
            Список токенов, включая EOF в конце

        Raises:
            ExpressionLexError: При обнаружении неизвестного символа
                или незакрытой строки
        """
        tokens: List[Token] = []
        position = 0

        while position < len(text):
            if text[position] in self.QUOTES:
                token, position = self._read_string(text, position)
                tokens.append(token)
                continue

            if tokens and tokens[-1].type == 'SYMBOL' and tokens[-1].value == '.':
                index_match = self._INDEX_PATTERN.match(text, position)
                if index_match:
                    tokens.append(Token(type='NUMBER', value=index_match.group(0), position=position))
                    position = index_match.end()
                    continue

            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue

                value = match.group(0)
                if not ignore:
                    if token_type == 'UNKNOWN':
                        raise ExpressionLexError(f"Unexpected character '{value}'", position)

                    # Определяем тип токена: ключевое слово или идентификатор
                    final_type = token_type
                    if token_type == 'IDENTIFIER' and value in self.KEYWORDS:
                        final_type = 'KEYWORD'

                    tokens.append(Token(type=final_type, value=value, position=position))

                position = match.end()
                break

        # Добавляем EOF токен
        tokens.append(Token(type='EOF', value='', position=position))

        return tokens

    def _read_string(self, text: str, start: int) -> Tuple[Token, int]:
        """Читает строковый литерал, начиная с открывающей кавычки."""
        quote = text[start]
        chars: List[str] = []
        position = start + 1

        while position < len(text):
            char = text[position]
            if char == '\\' and position + 1 < len(text) and text[position + 1] == quote:
                chars.append(text[position + 1])
                position += 2
                continue
            if char == quote:
                return Token(type='STRING', value=''.join(chars), position=start), position + 1
            chars.append(char)
            position += 1

        raise ExpressionLexError("Unterminated string literal", start)


__all__ = ["Token", "ExpressionLexer", "ExpressionLexError"]

"""
Лексический анализатор шаблонов YAPL.

Токенизирует исходный текст шаблона, разбивая его на последовательность
токенов для последующего синтаксического анализа:
- обычный текст
- комментарии {# ... #}
- переменные {{ ... }}
- директивы {% ... %}

Внутри {{ }} и {% %} разделители в строковых литералах не закрывают тег.
Символ `-` сразу после открывающего или перед закрывающим разделителем
записывается как флаг обрезки пробелов и не попадает в содержимое тега.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from ..errors import TemplateLexerError


class TokenType(enum.Enum):
    """Типы токенов в шаблоне."""

    # Текстовый контент
    TEXT = "TEXT"

    # Комментарий целиком {# ... #}
    COMMENT = "COMMENT"

    # Разделители переменных
    VAR_OPEN = "VAR_OPEN"      # {{
    VAR_CLOSE = "VAR_CLOSE"    # }}

    # Разделители директив
    TAG_OPEN = "TAG_OPEN"      # {%
    TAG_CLOSE = "TAG_CLOSE"    # %}

    # Сырое содержимое тега между разделителями
    RAW = "RAW"

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """
    Токен с позиционной информацией для точной диагностики ошибок.
    """
    type: TokenType
    value: str
    position: int        # Позиция начала в исходном тексте
    end: int             # Позиция сразу после токена
    line: int            # Номер строки (начиная с 1)
    column: int          # Номер колонки (начиная с 1)
    left_trim: bool = False   # {{- {%- {#-
    right_trim: bool = False  # -}} -%} -#}

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


# Открывающий разделитель -> (закрывающий разделитель, тип открытия, тип закрытия, имя для ошибок)
_TAGS = {
    "{{": ("}}", TokenType.VAR_OPEN, TokenType.VAR_CLOSE, "variable"),
    "{%": ("%}", TokenType.TAG_OPEN, TokenType.TAG_CLOSE, "directive"),
    "{#": ("#}", None, None, "comment"),
}

_QUOTES = ('"', "'")

TRIM_MARKER = "-"


class TemplateLexer:
    """
    Лексический анализатор шаблонов.

    Работает за один проход вперёд: iter_tokens() возвращает ленивый
    генератор, который нельзя перезапустить.
    """

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)
        self.position = 0
        # Начала строк для вычисления line/column по смещению
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]

    def tokenize(self) -> List[Token]:
        """
        Токенизирует весь исходный текст и возвращает список токенов.
        """
        return list(self.iter_tokens())

    def iter_tokens(self) -> Iterator[Token]:
        """
        Лениво извлекает токены из входного текста. Последний токен всегда EOF.

        Raises:
            TemplateLexerError: При незакрытом теге
        """
        while self.position < self.length:
            opener_pos, opener = self._find_next_opener(self.position)

            if opener is None:
                yield self._make(TokenType.TEXT, self.text[self.position:], self.position, self.length)
                self.position = self.length
                break

            if opener_pos > self.position:
                yield self._make(TokenType.TEXT, self.text[self.position:opener_pos], self.position, opener_pos)

            if opener == "{#":
                yield self._read_comment(opener_pos)
            else:
                yield from self._read_tag(opener_pos, opener)

        yield self._make(TokenType.EOF, "", self.length, self.length)

    def location(self, offset: int) -> Tuple[int, int]:
        """Переводит смещение в (строка, колонка), обе начиная с 1."""
        low, high = 0, len(self._line_starts) - 1
        while low < high:
            mid = (low + high + 1) // 2
            if self._line_starts[mid] <= offset:
                low = mid
            else:
                high = mid - 1
        return low + 1, offset - self._line_starts[low] + 1

    # ======= Внутренние методы =======

    def _find_next_opener(self, start: int) -> Tuple[int, Optional[str]]:
        """Находит ближайший открывающий разделитель ({{, {%, {#)."""
        pos = self.text.find("{", start)
        while pos != -1 and pos + 1 < self.length:
            candidate = self.text[pos:pos + 2]
            if candidate in _TAGS:
                return pos, candidate
            pos = self.text.find("{", pos + 1)
        return self.length, None

    def _read_comment(self, start: int) -> Token:
        """Читает комментарий {# ... #} (без учёта кавычек)."""
        content_start = start + 2
        left_trim = self.text.startswith(TRIM_MARKER, content_start)
        if left_trim:
            content_start += 1

        close = self.text.find("#}", content_start)
        if close == -1:
            self._raise_unterminated("comment", start)

        content_end = close
        right_trim = close > content_start and self.text[close - 1] == TRIM_MARKER
        if right_trim:
            content_end -= 1

        self.position = close + 2
        return self._make(
            TokenType.COMMENT, self.text[content_start:content_end], start, self.position,
            left_trim=left_trim, right_trim=right_trim,
        )

    def _read_tag(self, start: int, opener: str) -> Iterator[Token]:
        """Читает тег {{ ... }} или {% ... %} с учётом строковых литералов."""
        closer, open_type, close_type, kind = _TAGS[opener]

        content_start = start + 2
        left_trim = self.text.startswith(TRIM_MARKER, content_start)
        if left_trim:
            content_start += 1

        close = self._find_closer(content_start, closer)
        if close == -1:
            self._raise_unterminated(kind, start)

        content_end = close
        right_trim = close > content_start and self.text[close - 1] == TRIM_MARKER
        if right_trim:
            content_end -= 1

        yield self._make(open_type, opener, start, content_start, left_trim=left_trim)
        yield self._make(TokenType.RAW, self.text[content_start:content_end], content_start, content_end)

        self.position = close + 2
        yield self._make(close_type, closer, content_end, self.position, right_trim=right_trim)

    def _find_closer(self, start: int, closer: str) -> int:
        """
        Ищет закрывающий разделитель, пропуская строковые литералы.

        Обратный слэш экранирует только кавычку, открывшую строку.
        """
        pos = start
        quote: Optional[str] = None
        while pos < self.length:
            char = self.text[pos]
            if quote is not None:
                if char == "\\" and pos + 1 < self.length and self.text[pos + 1] == quote:
                    pos += 2
                    continue
                if char == quote:
                    quote = None
            elif char in _QUOTES:
                quote = char
            elif self.text.startswith(closer, pos):
                return pos
            pos += 1
        return -1

    def _make(
        self,
        token_type: TokenType,
        value: str,
        start: int,
        end: int,
        left_trim: bool = False,
        right_trim: bool = False,
    ) -> Token:
        line, column = self.location(start)
        return Token(token_type, value, start, end, line, column, left_trim, right_trim)

    def _raise_unterminated(self, kind: str, offset: int) -> None:
        line, column = self.location(offset)
        raise TemplateLexerError(
            f"Unterminated {kind} tag opened at offset {offset}",
            line, column, offset,
        )


def tokenize_template(text: str) -> List[Token]:
    """
    Удобная функция для токенизации шаблона.

    Args:
        text: Исходный текст шаблона

    Returns:
        Список токенов

    Raises:
        TemplateLexerError: При ошибке лексического анализа
    """
    lexer = TemplateLexer(text)
    return lexer.tokenize()


__all__ = ["TokenType", "Token", "TemplateLexer", "tokenize_template"]

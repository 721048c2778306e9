"""
Правила управления пробелами.

Порядок применения к тексту между тегами:
1. Флаги `-` у тегов действуют всегда и имеют приоритет: снимают
   горизонтальные пробелы вплотную к тегу и один перевод строки за ними.
2. trim_blocks: удаляется один перевод строки сразу после директивы.
3. lstrip_blocks: удаляются пробелы в начале строки, если строка до
   директивы состоит только из них.
4. dedent_blocks: из отрендеренного тела блока удаляется общий отступ
   (применяется рендерером, см. dedent_block).
"""

from __future__ import annotations

import os
import re
from typing import Optional

from .lexer import Token, TokenType
from ..config.model import WhitespaceOptions

# Пробелы после тега с `-`: горизонтальные пробелы и один перевод строки
_RIGHT_TRIM = re.compile(r"^[ \t]*(?:\r?\n)?")
# Пробелы перед тегом с `-`: один перевод строки и горизонтальные пробелы
_LEFT_TRIM = re.compile(r"(?:\r?\n)?[ \t]*\Z")
# Хвост последней строки, состоящий только из горизонтальных пробелов
_LINE_INDENT = re.compile(r"(?:^|\n)([ \t]*)\Z")
_LEADING_NEWLINE = re.compile(r"^\r?\n")
_INDENT = re.compile(r"[ \t]*")


def process_text(
    text: str,
    *,
    prev_token: Optional[Token],
    next_token: Optional[Token],
    at_input_start: bool,
    options: WhitespaceOptions,
) -> str:
    """
    Применяет правила 1-3 к текстовому фрагменту между двумя тегами.

    Args:
        text: Исходный текст фрагмента
        prev_token: Закрывающий токен предыдущего тега (или COMMENT), если есть
        next_token: Открывающий токен следующего тега (или COMMENT), если есть
        at_input_start: Фрагмент начинается в самом начале шаблона
        options: Настройки пробелов

    Returns:
        Текст после обрезки
    """
    start = _start_cut(text, prev_token, options)
    end = _end_cut(text, next_token, at_input_start, options)
    if end < start:
        return ""
    return text[start:end]


def _start_cut(text: str, prev_token: Optional[Token], options: WhitespaceOptions) -> int:
    if prev_token is None:
        return 0

    if prev_token.right_trim:
        return _RIGHT_TRIM.match(text).end()

    if options.trim_blocks and prev_token.type == TokenType.TAG_CLOSE:
        match = _LEADING_NEWLINE.match(text)
        if match:
            return match.end()

    return 0


def _end_cut(text: str, next_token: Optional[Token], at_input_start: bool, options: WhitespaceOptions) -> int:
    if next_token is None:
        return len(text)

    if next_token.left_trim:
        return _LEFT_TRIM.search(text).start()

    if options.lstrip_blocks and next_token.type == TokenType.TAG_OPEN:
        match = _LINE_INDENT.search(text)
        # Без перевода строки фрагмент начинается в начале строки только в начале шаблона
        if match and ("\n" in text or at_input_start):
            return match.start(1)

    return len(text)


def dedent_block(text: str) -> str:
    """
    Удаляет общий отступ всех непустых строк тела блока.

    Строки, состоящие только из пробелов, в расчёте отступа не участвуют
    и остаются без изменений.
    """
    lines = text.splitlines(keepends=True)
    indents = [_INDENT.match(line).group(0) for line in lines if line.strip()]
    margin = os.path.commonprefix(indents) if indents else ""
    if not margin:
        return text
    return "".join(line[len(margin):] if line.strip() else line for line in lines)


__all__ = ["WhitespaceOptions", "process_text", "dedent_block"]

from __future__ import annotations

import hashlib
import logging
import os
import threading
from typing import Dict, Optional

from ..template.nodes import ParsedTemplate

logger = logging.getLogger(__name__)

STRING_KEY_PREFIX = "string:"


def _sha1_text(text: str) -> str:
    """Простой хеш от текста для ключей строковых шаблонов."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def string_key(source: str) -> str:
    """Ключ кэша для шаблона, переданного строкой."""
    return STRING_KEY_PREFIX + _sha1_text(source)


def cache_enabled_from_env(default: bool) -> bool:
    """
    Переключатель кэша из окружения: YAPL_CACHE=0/false/no/off отключает,
    любое другое значение включает. Без переменной действует default.
    """
    env = os.environ.get("YAPL_CACHE", None)
    if env is None:
        return bool(default)
    return env.strip().lower() not in {"0", "false", "no", "off", ""}


class TemplateCache:
    """
    Кэш разобранных шаблонов в памяти процесса.

    Ключи: разрешённый путь файла или string:<sha1 исходника>.
    Записи добавляются только после успешного парсинга и больше не меняются,
    поэтому параллельные рендеры видят либо целое дерево, либо промах.
    """

    def __init__(self, *, enabled: Optional[bool] = None):
        self.enabled = cache_enabled_from_env(True if enabled is None else enabled)
        self._entries: Dict[str, ParsedTemplate] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ParsedTemplate]:
        if not self.enabled:
            return None
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, template: ParsedTemplate) -> ParsedTemplate:
        """
        Сохраняет разобранный шаблон.

        При гонке побеждает первая запись: результат парсинга детерминирован,
        поэтому все участники получают эквивалентное дерево.
        """
        if not self.enabled:
            return template
        with self._lock:
            existing = self._entries.setdefault(key, template)
        if existing is template:
            logger.debug(f"Cached parsed template {key}")
        return existing

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["TemplateCache", "string_key", "cache_enabled_from_env"]

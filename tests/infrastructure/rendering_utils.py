"""
Утилиты для рендеринга шаблонов в тестах.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from yapl.config import EngineOptions, WhitespaceOptions
from yapl.engine import Engine
from yapl.loader import DictLoader


def _options(base_dir: str = ".", whitespace: Optional[Dict[str, bool]] = None, **kwargs: Any) -> EngineOptions:
    return EngineOptions(
        base_dir=base_dir,
        whitespace=WhitespaceOptions(**(whitespace or {})),
        **kwargs,
    )


def make_engine(
    templates: Optional[Dict[str, str]] = None,
    *,
    strict_paths: bool = False,
    whitespace: Optional[Dict[str, bool]] = None,
    **kwargs: Any,
) -> Engine:
    """
    Создаёт движок с загрузчиком в памяти.

    Args:
        templates: Шаблоны по путям ("base.yapl", "/parts/a.yapl")
        strict_paths: Строгий режим путей
        whitespace: Настройки пробелов (trim_blocks, lstrip_blocks, dedent_blocks)
        **kwargs: Прочие поля EngineOptions (max_depth, cache)
    """
    loader = DictLoader(templates or {}, strict_paths=strict_paths)
    options = _options("/", whitespace, strict_paths=strict_paths, **kwargs)
    return Engine(options, loader=loader)


def make_fs_engine(root: Path, *, whitespace: Optional[Dict[str, bool]] = None, **kwargs: Any) -> Engine:
    """Создаёт движок, читающий шаблоны из директории root."""
    return Engine(_options(str(root), whitespace, **kwargs))


def render_str(source: str, variables: Optional[Dict[str, Any]] = None, **engine_kwargs: Any) -> str:
    """Рендерит строковый шаблон и возвращает только текст."""
    templates = engine_kwargs.pop("templates", None)
    engine = make_engine(templates, **engine_kwargs)
    return engine.render_string(source, variables or {}).content

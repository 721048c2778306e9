"""
Модели конфигурации движка.

Ключи принимаются как в camelCase (baseDir, strictPaths, trimBlocks),
так и в snake_case (base_dir, strict_paths, trim_blocks).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from ..errors import ConfigError


def _pick(data: Mapping[str, Any], keys: Tuple[str, ...], default: Any) -> Any:
    """Возвращает значение первого найденного ключа из вариантов написания."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _as_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Option '{name}' must be a boolean, got {type(value).__name__}")
    return value


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"Option '{name}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class WhitespaceOptions:
    """Переключатели правил управления пробелами."""
    trim_blocks: bool = False
    lstrip_blocks: bool = False
    dedent_blocks: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "WhitespaceOptions":
        """Создание экземпляра из словаря (из YAML)."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("Option 'whitespace' must be a mapping")
        return cls(
            trim_blocks=_as_bool(_pick(data, ("trimBlocks", "trim_blocks"), False), "trimBlocks"),
            lstrip_blocks=_as_bool(_pick(data, ("lstripBlocks", "lstrip_blocks"), False), "lstripBlocks"),
            dedent_blocks=_as_bool(_pick(data, ("dedentBlocks", "dedent_blocks"), False), "dedentBlocks"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в словарь (camelCase, как в файле конфигурации)."""
        return {
            "trimBlocks": self.trim_blocks,
            "lstripBlocks": self.lstrip_blocks,
            "dedentBlocks": self.dedent_blocks,
        }


@dataclass(frozen=True)
class EngineOptions:
    """
    Настройки движка.

    Attributes:
        base_dir: Корень разрешения путей
        cache: Мемоизация разобранных шаблонов
        strict_paths: Запрет путей вне base_dir
        max_depth: Общий бюджет вложенности extends/include/mixin
        extension: Расширение, добавляемое к ссылкам без суффикса
    """
    base_dir: str = "."
    cache: bool = True
    strict_paths: bool = False
    max_depth: int = 10
    extension: str = ".yapl"
    whitespace: WhitespaceOptions = field(default_factory=WhitespaceOptions)

    def __post_init__(self):
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 1:
            raise ConfigError(f"Option 'maxDepth' must be a positive integer, got {self.max_depth!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "EngineOptions":
        """Создание экземпляра из словаря (из YAML или аргументов вызова)."""
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigError("Engine options must be a mapping")
        return cls(
            base_dir=_as_str(_pick(data, ("baseDir", "base_dir"), "."), "baseDir"),
            cache=_as_bool(_pick(data, ("cache",), True), "cache"),
            strict_paths=_as_bool(_pick(data, ("strictPaths", "strict_paths"), False), "strictPaths"),
            max_depth=_pick(data, ("maxDepth", "max_depth"), 10),
            extension=_as_str(_pick(data, ("extension",), ".yapl"), "extension"),
            whitespace=WhitespaceOptions.from_dict(_pick(data, ("whitespace",), None)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в словарь (camelCase)."""
        return {
            "baseDir": self.base_dir,
            "cache": self.cache,
            "strictPaths": self.strict_paths,
            "maxDepth": self.max_depth,
            "extension": self.extension,
            "whitespace": self.whitespace.to_dict(),
        }


__all__ = ["WhitespaceOptions", "EngineOptions"]

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .model import EngineOptions
from ..errors import ConfigError

_yaml = YAML(typ="safe")


def _read_yaml_map(path: Path) -> dict:
    """Читает YAML файл и возвращает словарь."""
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return raw


def load_options(path: Path | str) -> EngineOptions:
    """
    Загружает настройки движка из YAML файла.

    Относительный baseDir разрешается от директории файла конфигурации.

    Raises:
        ConfigError: Если файла нет, документ не является словарём
            или значения имеют неверный тип
    """
    path = Path(path)
    options = EngineOptions.from_dict(_read_yaml_map(path))

    base_dir = Path(options.base_dir)
    if not base_dir.is_absolute():
        options = replace(options, base_dir=str((path.parent / base_dir).resolve()))
    return options


__all__ = ["load_options"]

"""
YAPL: a template engine for composing prompts.

Templates support variables with defaults, conditions, loops, inheritance
(extends/block/super), mixins and includes.
"""

from __future__ import annotations

from .config import EngineOptions, WhitespaceOptions, load_options
from .engine import Engine, render, render_string
from .errors import (
    ConfigError,
    MaxDepthExceededError,
    PathSecurityError,
    TemplateLexerError,
    TemplateLoadError,
    TemplateNotFoundError,
    TemplateParseError,
    TemplateResolutionError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    YaplError,
)
from .loader import DictLoader, FileSystemLoader, TemplateLoader
from .types import UNDEFINED, RenderResult
from .version import tool_version

__all__ = [
    "Engine",
    "render",
    "render_string",
    "RenderResult",
    "UNDEFINED",
    "EngineOptions",
    "WhitespaceOptions",
    "load_options",
    "TemplateLoader",
    "FileSystemLoader",
    "DictLoader",
    "YaplError",
    "TemplateSyntaxError",
    "TemplateLexerError",
    "TemplateParseError",
    "TemplateResolutionError",
    "TemplateNotFoundError",
    "TemplateLoadError",
    "MaxDepthExceededError",
    "PathSecurityError",
    "TemplateRuntimeError",
    "ConfigError",
    "tool_version",
]

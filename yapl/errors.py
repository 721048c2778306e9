"""
Exception hierarchy for the YAPL engine.

All expected failures of a render call inherit from YaplError so that callers
can report them as clean messages. Programming errors and bugs should NOT
inherit from YaplError: they propagate with full tracebacks.
"""

from __future__ import annotations

from typing import List, Optional


class YaplError(Exception):
    """Base class for all user-facing errors of the engine."""
    pass


class TemplateSyntaxError(YaplError):
    """
    Malformed template source.

    Carries the location of the offending construct when it is known.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        template_name: str = "",
    ):
        self.message = message
        self.line = line
        self.column = column
        self.template_name = template_name
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.template_name or "<string>"
        if self.line is not None:
            where = f"{where}:{self.line}:{self.column}"
        return f"{self.message} ({where})"

    def with_template(self, template_name: str) -> "TemplateSyntaxError":
        """Returns the same error bound to a template name."""
        self.template_name = template_name
        self.args = (self._format(),)
        return self


class TemplateLexerError(TemplateSyntaxError):
    """Lexical error: unterminated tag."""

    def __init__(self, message: str, line: int, column: int, position: int, template_name: str = ""):
        self.position = position
        super().__init__(message, line, column, template_name)


class TemplateParseError(TemplateSyntaxError):
    """Structural error: misplaced or unclosed directives, bad names, unsupported filters."""
    pass


class TemplateResolutionError(YaplError):
    """A referenced template could not be resolved or loaded."""
    pass


class TemplateNotFoundError(TemplateResolutionError):
    """The loader has no template for the resolved path."""

    def __init__(self, path: str):
        super().__init__(f"Template not found: {path}")
        self.path = path


class TemplateLoadError(TemplateResolutionError):
    """The loader failed to read an existing template."""

    def __init__(self, path: str, cause: Optional[Exception] = None):
        super().__init__(f"Failed to load template '{path}': {cause}")
        self.path = path
        self.cause = cause


class MaxDepthExceededError(TemplateResolutionError):
    """The shared extends/include/mixin nesting budget was exhausted."""

    def __init__(self, max_depth: int, chain: List[str]):
        trail = " -> ".join(chain)
        super().__init__(f"max template depth exceeded (possible recursion): limit {max_depth}, chain: {trail}")
        self.max_depth = max_depth
        self.chain = list(chain)


class PathSecurityError(YaplError):
    """
    A template reference escapes the configured base directory.

    Kept apart from TemplateResolutionError so that callers can tell a
    misconfigured template from a rejected path.
    """

    def __init__(self, ref: str, resolved: str, base_dir: str):
        super().__init__(f"path escapes base directory: '{ref}' resolves to '{resolved}' outside '{base_dir}'")
        self.ref = ref
        self.resolved = resolved
        self.base_dir = base_dir


class TemplateRuntimeError(YaplError):
    """Type error detected while rendering, e.g. iterating over a non-list."""

    def __init__(self, message: str, template_name: str = ""):
        super().__init__(f"{message} (in {template_name})" if template_name else message)
        self.template_name = template_name


class ConfigError(YaplError):
    """Invalid engine configuration."""
    pass


__all__ = [
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
]

"""
Main rendering pipeline.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from .cache.template_cache import TemplateCache, string_key
from .config import EngineOptions, load_options
from .errors import TemplateSyntaxError
from .loader import FileSystemLoader, TemplateLoader
from .scope import Scope
from .template.composer import STRING_SOURCE, RenderState, TemplateComposer
from .template.nodes import ParsedTemplate
from .template.parser import TemplateParser
from .template.renderer import TemplateRenderer
from .types import RenderResult

logger = logging.getLogger(__name__)


class Engine:
    """
    Engine coordinating class.

    Owns the components shared between render calls:
    - TemplateLoader for resolving and reading templates
    - TemplateCache for parsed templates
    - TemplateComposer for extends/mixin resolution

    Everything mutable during a render (depth stack, used files) lives in a
    per-call RenderState, so one engine can serve concurrent render calls.
    """

    def __init__(self, options: Optional[EngineOptions] = None, *, loader: Optional[TemplateLoader] = None):
        """
        Initialize engine with specified options.

        Args:
            options: Engine options (defaults when omitted)
            loader: Custom loader; by default templates are read from options.base_dir
        """
        self.options = options or EngineOptions()

        if loader is None:
            loader = FileSystemLoader(
                Path(self.options.base_dir),
                strict_paths=self.options.strict_paths,
                extension=self.options.extension,
            )
        self.loader = loader
        self.cache = TemplateCache(enabled=self.options.cache)
        self.composer = TemplateComposer(self.loader, self._parse_file)

    @classmethod
    def from_config(cls, path: Path | str, *, loader: Optional[TemplateLoader] = None) -> "Engine":
        """Create engine from a YAML config file."""
        return cls(load_options(path), loader=loader)

    def render(self, template_path: str, variables: Optional[Mapping[str, Any]] = None) -> RenderResult:
        """
        Render template file.

        Args:
            template_path: Template reference, resolved against base_dir
            variables: Template variables

        Returns:
            Rendered content and templates touched, in first-use order

        Raises:
            YaplError: Any lexical, structural, resolution or runtime error
        """
        state = RenderState(self.options.max_depth)
        path = self.loader.resolve_path(template_path, None)

        with state.enter(path):
            composed = self.composer.compose_file(path, state)
            content = self._renderer(state).render(composed, Scope(variables))

        logger.debug(f"Rendered '{path}' ({len(content)} chars, {len(state.used_files)} files)")
        return RenderResult(content=content, used_files=state.used_files)

    def render_string(
        self,
        source: str,
        variables: Optional[Mapping[str, Any]] = None,
        current_dir: Optional[str] = None,
    ) -> RenderResult:
        """
        Render template given as a string.

        Args:
            source: Template source
            variables: Template variables
            current_dir: Directory for relative extends/include/mixin references
                (base_dir when omitted)

        Returns:
            Rendered content and templates touched (the string itself is not listed)
        """
        state = RenderState(self.options.max_depth)

        with state.enter(STRING_SOURCE):
            template = self._parse_string(source)
            composed = self.composer.compose(template, STRING_SOURCE, current_dir, state)
            content = self._renderer(state).render(composed, Scope(variables))

        return RenderResult(content=content, used_files=state.used_files)

    def clear_cache(self) -> None:
        self.cache.clear()

    # ----------------------------- Internals ----------------------------- #

    def _renderer(self, state: RenderState) -> TemplateRenderer:
        return TemplateRenderer(self.loader, self.composer, state, self.options.whitespace)

    def _parse_file(self, path: str) -> ParsedTemplate:
        cached = self.cache.get(path)
        if cached is not None:
            logger.debug(f"Template cache hit: {path}")
            return cached
        source = self.loader.load_file(path)
        return self.cache.put(path, self._parse(source, path))

    def _parse_string(self, source: str) -> ParsedTemplate:
        key = string_key(source)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        return self.cache.put(key, self._parse(source, STRING_SOURCE))

    def _parse(self, source: str, name: str) -> ParsedTemplate:
        try:
            return TemplateParser(source, name, self.options.whitespace).parse()
        except TemplateSyntaxError as e:
            if not e.template_name:
                e.with_template(name)
            raise


# ----------------------------- Entry Points ----------------------------- #

def render(
    template_path: str,
    variables: Optional[Mapping[str, Any]] = None,
    options: Optional[EngineOptions] = None,
) -> RenderResult:
    """
    Render template file with a one-off engine.

    Args:
        template_path: Template reference, resolved against options.base_dir
        variables: Template variables
        options: Engine options

    Returns:
        Render result
    """
    return Engine(options).render(template_path, variables)


def render_string(
    source: str,
    variables: Optional[Mapping[str, Any]] = None,
    current_dir: Optional[str] = None,
    options: Optional[EngineOptions] = None,
) -> RenderResult:
    """Render template source with a one-off engine."""
    return Engine(options).render_string(source, variables, current_dir)


__all__ = ["Engine", "render", "render_string"]

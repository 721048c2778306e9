"""
Loaders: the boundary between the engine and template storage.

A loader turns a template reference into a canonical path and returns the
raw source for that path. The engine never touches storage directly.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, runtime_checkable

from .errors import PathSecurityError, TemplateLoadError, TemplateNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".yapl"


@runtime_checkable
class TemplateLoader(Protocol):
    """Protocol every loader implements."""

    def resolve_path(self, ref: str, from_dir: Optional[str]) -> str:
        """
        Resolves a template reference to a canonical path.

        Args:
            ref: Reference as written in the template ("a", "./b.yapl", "/c")
            from_dir: Directory of the referencing template, if any

        Raises:
            PathSecurityError: In strict mode, when the path leaves the root
        """
        ...

    def load_file(self, path: str) -> str:
        """
        Returns the source of a resolved template.

        Raises:
            TemplateNotFoundError: No template at the path
            TemplateLoadError: The template exists but cannot be read
        """
        ...


def _with_extension(ref: str, extension: str) -> str:
    """Appends the default extension when the last path component has no suffix."""
    name = ref.replace("\\", "/").rsplit("/", 1)[-1]
    if not name or "." in name:
        return ref
    return ref + extension


class FileSystemLoader:
    """
    Loads templates from a directory tree.

    References starting with "/" are relative to base_dir. Other references
    are relative to the referencing template's directory and fall back to
    base_dir when no such file exists there.
    """

    def __init__(self, base_dir: Path | str, *, strict_paths: bool = False, extension: str = DEFAULT_EXTENSION):
        self.base_dir = Path(base_dir).resolve()
        self.strict_paths = strict_paths
        self.extension = extension

    def resolve_path(self, ref: str, from_dir: Optional[str]) -> str:
        name = _with_extension(ref, self.extension)

        if name.startswith("/"):
            candidate = (self.base_dir / name.lstrip("/")).resolve()
        else:
            origin = Path(from_dir).resolve() if from_dir else self.base_dir
            candidate = (origin / name).resolve()
            if not candidate.is_file() and origin != self.base_dir:
                fallback = (self.base_dir / name).resolve()
                if fallback.is_file():
                    candidate = fallback

        if self.strict_paths and not _is_within(candidate, self.base_dir):
            raise PathSecurityError(ref, str(candidate), str(self.base_dir))

        return str(candidate)

    def load_file(self, path: str) -> str:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            raise TemplateNotFoundError(path)
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateLoadError(path, e) from e

        logger.debug(f"Loaded template file {path} ({len(text)} chars)")
        return text

    def __repr__(self) -> str:
        return f"FileSystemLoader({str(self.base_dir)!r}, strict_paths={self.strict_paths})"


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


class DictLoader:
    """
    In-memory loader keyed by POSIX paths rooted at "/".

    Keys may be given with or without the leading slash. Resolution follows
    the same rules as FileSystemLoader with "/" as base directory; in strict
    mode any reference climbing above "/" is rejected.
    """

    ROOT = "/"

    def __init__(self, templates: Mapping[str, str], *, strict_paths: bool = False,
                 extension: str = DEFAULT_EXTENSION):
        self.templates: Dict[str, str] = {
            posixpath.normpath(posixpath.join(self.ROOT, key)): source
            for key, source in templates.items()
        }
        self.strict_paths = strict_paths
        self.extension = extension

    def resolve_path(self, ref: str, from_dir: Optional[str]) -> str:
        name = _with_extension(ref, self.extension)
        origin = from_dir or self.ROOT

        if name.startswith("/"):
            joined = posixpath.join(self.ROOT, name.lstrip("/"))
        else:
            joined = posixpath.join(origin, name)
            fallback = posixpath.join(self.ROOT, name)
            if _normalize(joined) not in self.templates and _normalize(fallback) in self.templates:
                joined = fallback

        if self.strict_paths and _escapes_root(joined):
            raise PathSecurityError(ref, joined, self.ROOT)

        return _normalize(joined)

    def load_file(self, path: str) -> str:
        try:
            return self.templates[path]
        except KeyError:
            raise TemplateNotFoundError(path)

    def __repr__(self) -> str:
        return f"DictLoader({sorted(self.templates)!r})"


def _normalize(path: str) -> str:
    # normpath("/../a") == "/a": climbing above the root is clamped
    return posixpath.normpath(path)


def _escapes_root(path: str) -> bool:
    depth = 0
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            depth -= 1
            if depth < 0:
                return True
        else:
            depth += 1
    return False


__all__ = ["TemplateLoader", "FileSystemLoader", "DictLoader", "DEFAULT_EXTENSION"]

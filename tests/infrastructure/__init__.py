"""
Unified test infrastructure for YAPL.

Modules:
- file_utils: Utilities for creating template files and config files
- rendering_utils: Utilities for building engines and rendering templates
"""

from .file_utils import write, write_templates
from .rendering_utils import make_engine, make_fs_engine, render_str

__all__ = [
    "write",
    "write_templates",
    "make_engine",
    "make_fs_engine",
    "render_str",
]

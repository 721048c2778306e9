"""
Configuration of the YAPL engine.
"""

from __future__ import annotations

from .model import EngineOptions, WhitespaceOptions
from .load import load_options

__all__ = ["EngineOptions", "WhitespaceOptions", "load_options"]

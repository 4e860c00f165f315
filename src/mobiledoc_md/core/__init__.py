"""Core shared helpers for mobiledoc-md."""

from __future__ import annotations

from .config import TomlConfigError, load_toml, merge_defaults
from .logging import JsonLogFormatter, configure_logger

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "configure_logger",
    "JsonLogFormatter",
]

"""Utility modules.

This package provides shared utilities used across the codebase.
"""

from .bands import (
    DEFAULT_BAND_SET,
    load_band_set_yaml,
    load_bands,
    resolve_band_set_path,
    save_band_set_yaml,
)

__all__ = [
    "DEFAULT_BAND_SET",
    "load_band_set_yaml",
    "load_bands",
    "resolve_band_set_path",
    "save_band_set_yaml",
]

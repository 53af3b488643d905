"""Utility helpers for name normalization and display."""

from __future__ import annotations

import re

from .config import SENTINEL_PREFIX

FILE_STEM_PATTERN = re.compile(r"[^a-zA-Z0-9]")
SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def sanitize_file_stem(value: str, fallback: str = "photo") -> str:
    """Drop every character that is not an ASCII letter or digit."""
    return FILE_STEM_PATTERN.sub("", value) or fallback


def has_prefix(name: str, prefix: str = SENTINEL_PREFIX) -> bool:
    return name.startswith(prefix)


def strip_prefix(name: str, prefix: str = SENTINEL_PREFIX) -> str:
    """Remove one leading sentinel prefix, if present."""
    if name.startswith(prefix):
        return name[len(prefix):]
    return name


def ensure_prefix(name: str, prefix: str = SENTINEL_PREFIX) -> str:
    return name if name.startswith(prefix) else f"{prefix}{name}"


def format_file_size(size: int) -> str:
    """Render a byte count the way file pickers usually show it."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {SIZE_UNITS[unit]}"

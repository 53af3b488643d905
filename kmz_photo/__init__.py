"""Merge geotagged KMZ placemarks with a ZIP archive of photos."""

from __future__ import annotations

from .assembler import integrate
from .archive import build_archive
from .markers import extract_markers, load_map, parse_document
from .models import MatchPolicy
from .photos import extract_photos

__all__ = [
    "MatchPolicy",
    "build_archive",
    "extract_markers",
    "extract_photos",
    "integrate",
    "load_map",
    "parse_document",
]

"""Data models used throughout the integration pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .config import DEFAULT_DOCUMENT_ENTRY


class MatchPolicy(str, Enum):
    """Strategy used to pair placemarks with photos."""

    MATCH_NAME = "match-name"
    SEQUENTIAL = "sequential"

    @classmethod
    def parse(cls, value: Union[str, "MatchPolicy"]) -> "MatchPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(policy.value for policy in cls)
            raise ValueError(f"Unknown match policy {value!r} (expected one of: {choices})") from None


@dataclass(frozen=True)
class Coordinates:
    longitude: float
    latitude: float
    altitude: float = 0.0


@dataclass(frozen=True)
class Marker:
    """Placemark selected from the source map document."""

    id: str
    name: str
    description: str = ""
    coordinates: Optional[Coordinates] = None
    # Slash-joined Folder/Placemark ancestor names, root first.
    path: str = ""


@dataclass(frozen=True)
class Photo:
    """Image asset read from the companion archive."""

    name: str
    full_path: str
    mime_type: str
    content: bytes = field(repr=False)
    extension: str = ""


@dataclass(frozen=True)
class IntegrationRecord:
    """A marker paired with the photo that will be packaged for it."""

    marker: Marker
    photo: Photo
    file_name: str


@dataclass(frozen=True)
class LogEntry:
    status: str
    message: str


@dataclass
class PhotoExtraction:
    photos: List[Photo]
    warnings: List[str]


@dataclass
class MapData:
    """Markers and folder layout loaded from a KMZ archive."""

    markers: List[Marker]
    folder_structure: Dict[str, Any]
    document_entry: str = DEFAULT_DOCUMENT_ENTRY


@dataclass
class IntegrationResult:
    """Outcome of one integration run."""

    document: bytes = field(repr=False)
    records: List[IntegrationRecord]
    total_markers: int
    total_photos: int
    integrated_count: int
    warnings: List[str]
    logs: List[LogEntry]


@dataclass
class MergeResult:
    integration: IntegrationResult
    archive: bytes = field(repr=False)
    photo_warnings: List[str] = field(default_factory=list)

    @property
    def warnings(self) -> List[str]:
        return [*self.photo_warnings, *self.integration.warnings]

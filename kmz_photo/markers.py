"""Placemark extraction from KML documents."""

from __future__ import annotations

import logging
import math
import random
import re
import string
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .archive import find_document_entry, open_archive
from .config import SENTINEL_PREFIX
from .errors import MalformedMarker
from .models import Coordinates, MapData, Marker

logger = logging.getLogger("kmz_photo")

IdGenerator = Callable[[], str]

NO_NAME = "Unnamed"
PATH_ELEMENTS = {"Folder", "Placemark"}
ROOT_ELEMENT = "Document"
_ID_ALPHABET = string.ascii_lowercase + string.digits
COMMA_PATTERN = re.compile(r"\s*,\s*")


def random_marker_id() -> str:
    """Generate a short random identifier for placemarks without an ``id``."""
    return "placemark_" + "".join(random.choices(_ID_ALPHABET, k=9))


def parse_document(text: Union[str, bytes]) -> BeautifulSoup:
    """Parse KML text into a BeautifulSoup tree using the XML parser."""
    return BeautifulSoup(text, "xml")


def _child_text(element: Tag, name: str) -> Optional[str]:
    child = element.find(name, recursive=False)
    if child is None:
        return None
    return child.get_text()


def _parse_altitude(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        altitude = float(value)
    except ValueError:
        return 0.0
    return 0.0 if math.isnan(altitude) else altitude


def parse_coordinates(text: str) -> Coordinates:
    """Parse the first ``lon,lat[,alt]`` tuple of a coordinates element."""
    tuples = COMMA_PATTERN.sub(",", text.strip()).split()
    if not tuples:
        raise MalformedMarker("Empty coordinates")
    parts = [part.strip() for part in tuples[0].split(",")]
    if len(parts) < 2:
        raise MalformedMarker(f"Incomplete coordinates {tuples[0]!r}")
    try:
        longitude = float(parts[0])
        latitude = float(parts[1])
    except ValueError as exc:
        raise MalformedMarker(f"Invalid coordinates {tuples[0]!r}") from exc
    altitude = _parse_altitude(parts[2] if len(parts) > 2 else None)
    return Coordinates(longitude=longitude, latitude=latitude, altitude=altitude)


def _extract_coordinates(placemark: Tag) -> Optional[Coordinates]:
    point = placemark.find("Point")
    if point is None:
        return None
    coordinates = point.find("coordinates")
    if coordinates is None:
        return None
    text = coordinates.get_text()
    if not text.strip():
        return None
    return parse_coordinates(text)


def marker_path(placemark: Tag) -> str:
    """Slash-joined names of the Folder/Placemark ancestors of ``placemark``."""
    names: List[str] = []
    for parent in placemark.parents:
        if parent.name == ROOT_ELEMENT:
            break
        if parent.name in PATH_ELEMENTS:
            name = _child_text(parent, "name")
            if name is not None:
                names.append(name.strip())
    return "/".join(reversed(names))


def _extract_marker(placemark: Tag, id_generator: IdGenerator) -> Optional[Marker]:
    name_text = _child_text(placemark, "name")
    name = name_text.strip() if name_text is not None else NO_NAME
    if not name.startswith(SENTINEL_PREFIX):
        return None

    marker_id = placemark.get("id") or id_generator()
    return Marker(
        id=marker_id,
        name=name,
        description=_child_text(placemark, "description") or "",
        coordinates=_extract_coordinates(placemark),
        path=marker_path(placemark),
    )


def extract_markers(
    document: BeautifulSoup,
    id_generator: Optional[IdGenerator] = None,
) -> List[Marker]:
    """Return the placemarks whose name starts with the sentinel prefix.

    Placemarks are visited in document order at any nesting depth. A
    placemark that fails to extract is logged and skipped; the remaining
    placemarks are still processed.
    """
    id_generator = id_generator or random_marker_id
    markers: List[Marker] = []
    for placemark in document.find_all("Placemark"):
        try:
            marker = _extract_marker(placemark, id_generator)
        except Exception as exc:  # noqa: BLE001 - one bad placemark must not stop the batch
            logger.warning(
                "Skipping placemark %s: %s",
                placemark.get("id") or _child_text(placemark, "name") or "<unnamed>",
                exc,
            )
            continue
        if marker is not None:
            markers.append(marker)
    logger.info('Found %d placemarks named with "%s"', len(markers), SENTINEL_PREFIX)
    return markers


def build_folder_structure(markers: Iterable[Marker]) -> Dict[str, Any]:
    """Nest markers under their folder path as dictionaries."""
    structure: Dict[str, Any] = {}
    for marker in markers:
        level = structure
        for folder in marker.path.split("/"):
            if not folder:
                continue
            level = level.setdefault(folder, {})
        level[marker.name] = {"type": "placemark", "id": marker.id}
    return structure


def load_map(kmz: bytes, id_generator: Optional[IdGenerator] = None) -> MapData:
    """Read the KML document from KMZ bytes and extract its markers."""
    with open_archive(kmz) as archive:
        entry = find_document_entry(archive)
        # Raw bytes so the parser honours the declared encoding.
        content = archive.read(entry)
    logger.debug("Reading map document %s", entry)
    markers = extract_markers(parse_document(content), id_generator)
    return MapData(
        markers=markers,
        folder_structure=build_folder_structure(markers),
        document_entry=entry,
    )

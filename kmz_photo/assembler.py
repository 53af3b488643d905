"""Pairing markers with photos and building the integrated KML document."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup, CData, Tag

from .config import IMAGE_EXTENSION, KML_NAMESPACE, SENTINEL_PREFIX, IntegrationConfig
from .diagnostics import (
    Diagnostics,
    check_file_name_collisions,
    check_mismatch_warnings,
    image_tag,
    log_integration_results,
)
from .errors import AssemblyFailure
from .models import IntegrationRecord, IntegrationResult, Marker, MatchPolicy, Photo
from .utils import ensure_prefix, has_prefix, sanitize_file_stem, strip_prefix

logger = logging.getLogger("kmz_photo")

Matcher = Callable[[Sequence[Marker], Sequence[Photo]], List[IntegrationRecord]]


def generated_file_name(marker_name: str) -> str:
    return sanitize_file_stem(marker_name) + IMAGE_EXTENSION


def _find_by_stripped_name(
    markers: Iterable[Marker], photo_name: str, prefix: str
) -> Optional[Marker]:
    stripped = strip_prefix(photo_name, prefix)
    for marker in markers:
        if marker.name == f"{prefix}{stripped}" or strip_prefix(marker.name, prefix) == stripped:
            return marker
    return None


def match_by_name(
    markers: Sequence[Marker],
    photos: Sequence[Photo],
    prefix: str = SENTINEL_PREFIX,
) -> List[IntegrationRecord]:
    """Bind each photo to the marker carrying the same name.

    A photo named ``Tower1`` or ``?-Tower1`` both bind to the marker
    ``?-Tower1``. Photos are visited in extraction order and the first
    matching marker wins; photos without a match are dropped.
    """
    lookup: Dict[str, Marker] = {}
    for marker in markers:
        if has_prefix(marker.name, prefix):
            lookup.setdefault(marker.name, marker)

    records: List[IntegrationRecord] = []
    for photo in photos:
        candidate = ensure_prefix(photo.name, prefix)
        marker = lookup.get(candidate)
        if marker is None:
            marker = _find_by_stripped_name(lookup.values(), photo.name, prefix)
        if marker is None:
            logger.debug("No placemark matches photo %s", photo.full_path)
            continue
        records.append(
            IntegrationRecord(marker=marker, photo=photo, file_name=generated_file_name(marker.name))
        )
    return records


def match_sequential(
    markers: Sequence[Marker], photos: Sequence[Photo]
) -> List[IntegrationRecord]:
    """Pair the i-th marker with the i-th photo up to the shorter length."""
    return [
        IntegrationRecord(marker=marker, photo=photo, file_name=generated_file_name(marker.name))
        for marker, photo in zip(markers, photos)
    ]


MATCHERS: Dict[MatchPolicy, Matcher] = {
    MatchPolicy.MATCH_NAME: match_by_name,
    MatchPolicy.SEQUENTIAL: match_sequential,
}


def _text_tag(soup: BeautifulSoup, name: str, text: str) -> Tag:
    tag = soup.new_tag(name)
    tag.string = text
    return tag


def format_coordinate(value: float) -> str:
    """Plain decimal text for a coordinate, never exponent notation."""
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def new_document(config: IntegrationConfig) -> Tuple[BeautifulSoup, Tag]:
    """Create an empty KML document and return it with its photo folder."""
    soup = BeautifulSoup(features="xml")
    root = soup.new_tag("kml", attrs={"xmlns": KML_NAMESPACE})
    soup.append(root)

    document = soup.new_tag("Document")
    root.append(document)
    document.append(_text_tag(soup, "name", config.document_name))

    style = soup.new_tag("Style", attrs={"id": config.style_id})
    icon_style = soup.new_tag("IconStyle")
    icon = soup.new_tag("Icon")
    icon.append(_text_tag(soup, "href", config.icon_href))
    icon_style.append(icon)
    style.append(icon_style)
    document.append(style)

    folder = soup.new_tag("Folder")
    folder.append(_text_tag(soup, "name", config.folder_name))
    document.append(folder)
    return soup, folder


def build_placemark(
    soup: BeautifulSoup, record: IntegrationRecord, config: IntegrationConfig
) -> Tag:
    """Create the output Placemark for one integration record."""
    marker = record.marker
    placemark = soup.new_tag("Placemark")
    placemark.append(_text_tag(soup, "styleUrl", f"#{config.style_id}"))
    placemark.append(_text_tag(soup, "name", marker.name))

    description = soup.new_tag("description")
    description.append(
        CData(image_tag(record.file_name, max_width=config.image_max_width, photo_dir=config.photo_dir))
    )
    placemark.append(description)

    if marker.coordinates is not None:
        coords = marker.coordinates
        point = soup.new_tag("Point")
        point.append(
            _text_tag(
                soup,
                "coordinates",
                ",".join(
                    format_coordinate(value)
                    for value in (coords.longitude, coords.latitude, coords.altitude)
                ),
            )
        )
        placemark.append(point)
    return placemark


def integrate(
    markers: Sequence[Marker],
    photos: Sequence[Photo],
    policy: Union[MatchPolicy, str],
    config: Optional[IntegrationConfig] = None,
) -> IntegrationResult:
    """Pair markers with photos and render the integrated KML document.

    Raises :class:`AssemblyFailure` when the document cannot be built; no
    partial result is returned in that case.
    """
    policy = MatchPolicy.parse(policy)
    config = config or IntegrationConfig()
    diagnostics = Diagnostics()

    try:
        records = MATCHERS[policy](markers, photos)
        soup, folder = new_document(config)
        for record in records:
            folder.append(build_placemark(soup, record, config))
        document = soup.encode("utf-8")
    except Exception as exc:  # noqa: BLE001 - surface as a single fatal error
        raise AssemblyFailure(f"Failed to integrate photos: {exc}") from exc

    integrated_count = len(records)
    log_integration_results(diagnostics, policy, len(markers), integrated_count, config)
    check_mismatch_warnings(diagnostics, policy, len(markers), len(photos))
    check_file_name_collisions(diagnostics, records)
    logger.info(
        "Integrated %d of %d photos into %d placemarks (%s)",
        integrated_count,
        len(photos),
        len(markers),
        policy.value,
    )
    return IntegrationResult(
        document=document,
        records=records,
        total_markers=len(markers),
        total_photos=len(photos),
        integrated_count=integrated_count,
        warnings=diagnostics.warnings,
        logs=diagnostics.logs,
    )

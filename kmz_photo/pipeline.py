"""High-level orchestration: KMZ + photo ZIP in, integrated KMZ out."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from .archive import build_archive
from .assembler import integrate
from .config import SENTINEL_PREFIX, IntegrationConfig
from .errors import NoMarkersFound
from .markers import IdGenerator, load_map
from .models import MatchPolicy, MergeResult
from .photos import extract_photos

logger = logging.getLogger("kmz_photo")


def default_output_path(kmz_path: Path) -> Path:
    """``survey.kmz`` becomes ``survey_with_photos.kmz`` next to the input."""
    suffix = kmz_path.suffix or ".kmz"
    return kmz_path.with_name(f"{kmz_path.stem}_with_photos{suffix}")


def merge_archives(
    kmz: bytes,
    photos_zip: bytes,
    policy: Union[MatchPolicy, str] = MatchPolicy.MATCH_NAME,
    config: Optional[IntegrationConfig] = None,
    id_generator: Optional[IdGenerator] = None,
) -> MergeResult:
    """Run the full integration on in-memory archives."""
    config = config or IntegrationConfig()
    map_data = load_map(kmz, id_generator)
    if not map_data.markers:
        raise NoMarkersFound(
            f'No placemarks with the "{SENTINEL_PREFIX}" prefix were found in the KMZ file'
        )

    extraction = extract_photos(photos_zip, max_workers=config.max_workers)
    for warning in extraction.warnings:
        logger.warning(warning)

    integration = integrate(map_data.markers, extraction.photos, policy, config)
    archive = build_archive(integration.document, integration.records, config)
    return MergeResult(
        integration=integration,
        archive=archive,
        photo_warnings=extraction.warnings,
    )


def merge_files(
    kmz_path: Path,
    photos_path: Path,
    output_path: Optional[Path] = None,
    policy: Union[MatchPolicy, str] = MatchPolicy.MATCH_NAME,
    config: Optional[IntegrationConfig] = None,
) -> Tuple[Path, MergeResult]:
    """Merge archives on disk and write the integrated KMZ."""
    kmz_path = Path(kmz_path)
    result = merge_archives(
        kmz_path.read_bytes(),
        Path(photos_path).read_bytes(),
        policy=policy,
        config=config,
    )
    destination = Path(output_path) if output_path else default_output_path(kmz_path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(result.archive)
    logger.info("Saved integrated KMZ to %s", destination)
    return destination, result

"""Reading and writing the ZIP containers behind KMZ files and photo bundles."""

from __future__ import annotations

import io
import logging
import zipfile
from typing import Dict, Iterable, Optional

from .config import IntegrationConfig
from .errors import AssemblyFailure, InvalidArchive, MissingDocumentEntry
from .models import IntegrationRecord

logger = logging.getLogger("kmz_photo")


def open_archive(data: bytes) -> zipfile.ZipFile:
    """Open in-memory archive bytes for reading."""
    try:
        return zipfile.ZipFile(io.BytesIO(data), "r")
    except zipfile.BadZipFile as exc:
        raise InvalidArchive(f"Not a valid ZIP archive: {exc}") from exc


def find_document_entry(archive: zipfile.ZipFile) -> str:
    """Return the name of the first KML entry in the archive."""
    for info in archive.infolist():
        if not info.is_dir() and info.filename.lower().endswith(".kml"):
            return info.filename
    raise MissingDocumentEntry("Could not find a KML file inside the KMZ archive")


def build_archive(
    document: bytes,
    records: Iterable[IntegrationRecord],
    config: Optional[IntegrationConfig] = None,
) -> bytes:
    """Package the KML document and the matched photos into KMZ bytes.

    Photos are stored under the photo directory using each record's
    generated file name. When several records share a file name the last
    photo replaces the earlier ones; the entry keeps the position of the
    first.
    """
    config = config or IntegrationConfig()
    buffer = io.BytesIO()
    contents: Dict[str, bytes] = {}
    try:
        for record in records:
            path = f"{config.photo_dir}/{record.file_name}"
            if path in contents:
                logger.debug("Replacing duplicate archive path %s", path)
            contents[path] = record.photo.content
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(config.document_entry, document)
            archive.writestr(zipfile.ZipInfo(f"{config.photo_dir}/"), b"")
            for path, content in contents.items():
                archive.writestr(path, content)
    except Exception as exc:  # noqa: BLE001 - surface as a single fatal error
        raise AssemblyFailure(f"Failed to build the KMZ archive: {exc}") from exc
    logger.info("Packaged %d photos into the KMZ archive", len(contents))
    return buffer.getvalue()

"""Photo extraction from ZIP archives."""

from __future__ import annotations

import logging
import zipfile
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

from filetype import guess

from .archive import open_archive
from .diagnostics import NO_IMAGES_WARNING
from .errors import MalformedPhotoEntry
from .models import Photo, PhotoExtraction

logger = logging.getLogger("kmz_photo")

ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

EntryOutcome = Union[Photo, str]


def mime_type_for(extension: str) -> str:
    return MIME_TYPES.get(extension.lower(), DEFAULT_MIME_TYPE)


def sniff_image_extension(content: bytes) -> Optional[str]:
    """Extension implied by the image signature, or ``None`` for non-images."""
    kind = guess(content)
    if kind is None or not kind.mime.startswith("image/"):
        return None
    return normalize_extension(kind.extension)


def normalize_extension(extension: str) -> str:
    extension = extension.lower()
    return "jpg" if extension == "jpeg" else extension


def is_photo_entry(info: zipfile.ZipInfo) -> bool:
    return not info.is_dir() and info.filename.lower().endswith(ALLOWED_IMAGE_EXTENSIONS)


def split_photo_name(full_path: str) -> Tuple[str, str]:
    """Return the file stem and lowercase extension of an archive path."""
    filename = full_path.split("/")[-1]
    stem, _, extension = filename.rpartition(".")
    return stem, extension.lower()


def read_photo(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> Photo:
    """Decode one archive entry into a :class:`Photo`."""
    try:
        content = archive.read(info)
    except Exception as exc:  # noqa: BLE001 - re-raised as a per-entry failure
        raise MalformedPhotoEntry(str(exc)) from exc

    name, extension = split_photo_name(info.filename)
    sniffed = sniff_image_extension(content)
    if sniffed is None:
        logger.debug("%s has no recognised image signature", info.filename)
    elif sniffed != normalize_extension(extension):
        logger.warning("%s is named .%s but holds %s data", info.filename, extension, sniffed)
    return Photo(
        name=name,
        full_path=info.filename,
        mime_type=mime_type_for(extension),
        content=content,
        extension=extension,
    )


def _process_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> EntryOutcome:
    try:
        return read_photo(archive, info)
    except Exception as exc:  # noqa: BLE001 - one bad entry must not stop the batch
        logger.warning("Failed to process %s: %s", info.filename, exc)
        return f"Failed to process {info.filename}: {exc}"


def extract_photos(data: bytes, max_workers: int = 4) -> PhotoExtraction:
    """Extract every JPEG, PNG and GIF entry from ZIP archive bytes.

    Entries are decoded on a thread pool; the resulting photos keep the
    order in which the entries appear in the archive.
    """
    photos: List[Photo] = []
    warnings: List[str] = []
    with open_archive(data) as archive:
        entries = [info for info in archive.infolist() if is_photo_entry(info)]
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            outcomes = list(pool.map(lambda info: _process_entry(archive, info), entries))

    for outcome in outcomes:
        if isinstance(outcome, Photo):
            photos.append(outcome)
        else:
            warnings.append(outcome)

    if not photos:
        warnings.append(NO_IMAGES_WARNING)
    logger.info("Extracted %d photos from %d image entries", len(photos), len(entries))
    return PhotoExtraction(photos=photos, warnings=warnings)

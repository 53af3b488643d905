"""Configuration objects and constants for KMZ photo integration."""

from __future__ import annotations

from dataclasses import dataclass

SENTINEL_PREFIX = "?-"
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
DEFAULT_DOCUMENT_ENTRY = "doc.kml"
DEFAULT_PHOTO_DIR = "files"
DEFAULT_ICON_HREF = "http://maps.google.com/mapfiles/kml/pushpin/ylw-pushpin.png"
# Every packaged photo is written as .jpg, whatever its source format.
IMAGE_EXTENSION = ".jpg"


@dataclass
class IntegrationConfig:
    """Settings that shape the generated KML document and KMZ archive."""

    document_name: str = "KMZ Photo Integration"
    folder_name: str = "Photos"
    style_id: str = "placemark-style"
    icon_href: str = DEFAULT_ICON_HREF
    image_max_width: int = 500
    document_entry: str = DEFAULT_DOCUMENT_ENTRY
    photo_dir: str = DEFAULT_PHOTO_DIR
    max_workers: int = 4

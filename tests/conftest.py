from __future__ import annotations

import io
import itertools
import zipfile
from typing import Dict, Optional, Tuple, Union

import pytest

from kmz_photo.models import Coordinates, Marker, Photo

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x11" * 64
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x22" * 64
GIF_BYTES = b"GIF89a" + b"\x33" * 64


def placemark_xml(
    name: Optional[str],
    coordinates: Optional[str] = None,
    element_id: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    attrs = f' id="{element_id}"' if element_id else ""
    parts = [f"<Placemark{attrs}>"]
    if name is not None:
        parts.append(f"<name>{name}</name>")
    if description is not None:
        parts.append(f"<description>{description}</description>")
    if coordinates is not None:
        parts.append(f"<Point><coordinates>{coordinates}</coordinates></Point>")
    parts.append("</Placemark>")
    return "".join(parts)


def kml_document(body: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<kml xmlns="http://www.opengis.net/kml/2.2">'
        f"<Document><name>Survey</name>{body}</Document>"
        "</kml>"
    )


def make_zip(
    entries: Dict[str, Union[str, bytes]],
    compression: int = zipfile.ZIP_DEFLATED,
) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, content in entries.items():
            if name.endswith("/"):
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def make_marker(
    name: str,
    coordinates: Optional[Tuple[float, float, float]] = None,
    marker_id: Optional[str] = None,
) -> Marker:
    return Marker(
        id=marker_id or f"id-{name}",
        name=name,
        coordinates=Coordinates(*coordinates) if coordinates else None,
    )


def make_photo(name: str, extension: str = "jpg", content: bytes = JPEG_BYTES) -> Photo:
    return Photo(
        name=name,
        full_path=f"photos/{name}.{extension}",
        mime_type="image/jpeg",
        content=content + name.encode("utf-8"),
        extension=extension,
    )


@pytest.fixture
def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"marker-{next(counter)}"


@pytest.fixture
def scenario_markers():
    return [
        make_marker("?-A", (10.0, 20.0, 0.0)),
        make_marker("?-B", (30.0, 40.0, 5.0)),
    ]


@pytest.fixture
def scenario_photos():
    return [make_photo("A"), make_photo("B"), make_photo("C")]


@pytest.fixture
def survey_kmz():
    body = (
        "<Folder><name>Site</name>"
        + placemark_xml("?-A", "10,20,0", element_id="pm-a")
        + placemark_xml("?-B", "30,40,5")
        + placemark_xml("Reference point", "1,2,3")
        + "</Folder>"
    )
    return make_zip({"doc.kml": kml_document(body)})


@pytest.fixture
def photos_zip():
    return make_zip(
        {
            "photos/": b"",
            "photos/A.jpg": JPEG_BYTES,
            "photos/B.png": PNG_BYTES,
            "photos/C.gif": GIF_BYTES,
            "photos/notes.txt": "not a photo",
        }
    )

"""Exceptions raised by the integration pipeline."""

from __future__ import annotations


class KmzPhotoError(Exception):
    """Base class for every failure surfaced to callers."""


class InvalidArchive(KmzPhotoError):
    """The supplied bytes are not a readable ZIP archive."""


class MissingDocumentEntry(KmzPhotoError):
    """The map archive holds no KML document."""


class MalformedMarker(KmzPhotoError):
    """A single Placemark could not be extracted."""


class MalformedPhotoEntry(KmzPhotoError):
    """A single image entry could not be decoded."""


class NoMarkersFound(KmzPhotoError):
    """The map document has no placemarks carrying the sentinel prefix."""


class AssemblyFailure(KmzPhotoError):
    """Building the new document or archive failed; nothing was produced."""

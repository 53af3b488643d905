"""Per-run warnings and status logs produced while integrating photos."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Sequence

from .config import SENTINEL_PREFIX, IntegrationConfig
from .models import IntegrationRecord, LogEntry, MatchPolicy

STATUS_SUCCESS = "success"
STATUS_INFO = "info"
STATUS_WARNING = "warning"

NO_IMAGES_WARNING = "No image files were found in the ZIP archive"


@dataclass
class Diagnostics:
    """Append-only diagnostics for a single integration run.

    A fresh instance is created for every run so nothing leaks between
    calls. ``successes`` accumulates the counts reported by success entries.
    """

    warnings: List[str] = field(default_factory=list)
    logs: List[LogEntry] = field(default_factory=list)
    successes: int = 0

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def success(self, message: str, count: int) -> None:
        self.logs.append(LogEntry(STATUS_SUCCESS, message))
        self.successes += count

    def info(self, message: str) -> None:
        self.logs.append(LogEntry(STATUS_INFO, message))

    def warning(self, message: str) -> None:
        self.logs.append(LogEntry(STATUS_WARNING, message))


def count_unmatched_photos(total_photos: int, successes: int) -> int:
    """Photos left without a placemark under the name-matching policy.

    This is ``total_photos - successes`` and does not tell apart photos that
    matched nothing from photos that were bound to an already used marker.
    """
    return max(total_photos - successes, 0)


def image_tag(file_name: str, max_width: int = 500, photo_dir: str = "files") -> str:
    return f'<img style="max-width:{max_width}px;" src="{photo_dir}/{file_name}"/>'


def log_integration_results(
    diagnostics: Diagnostics,
    policy: MatchPolicy,
    marker_count: int,
    integrated_count: int,
    config: IntegrationConfig,
) -> None:
    diagnostics.success(
        f"Created a new KMZ file with {integrated_count} placemarks that have photos",
        integrated_count,
    )
    diagnostics.info(f'Total placemarks with the "{SENTINEL_PREFIX}" prefix: {marker_count}')
    diagnostics.info(
        "Image descriptions use the simple format: "
        + image_tag("filename.jpg", max_width=config.image_max_width, photo_dir=config.photo_dir)
    )
    if policy is MatchPolicy.MATCH_NAME:
        diagnostics.info("Integration used the name matching method")
    else:
        diagnostics.info("Integration used the sequential method")


def check_mismatch_warnings(
    diagnostics: Diagnostics,
    policy: MatchPolicy,
    marker_count: int,
    photo_count: int,
) -> None:
    if policy is MatchPolicy.SEQUENTIAL:
        if marker_count > photo_count:
            diagnostics.warn(
                f"Photo count ({photo_count}) is lower than placemark count ({marker_count})"
            )
            diagnostics.warning(
                "Some placemarks did not receive a photo because there are not enough photos"
            )
        elif marker_count < photo_count:
            diagnostics.warn(
                f"Photo count ({photo_count}) is higher than placemark count ({marker_count})"
            )
            diagnostics.warning(
                "Some photos were not used because there are not enough placemarks"
            )
        return

    unmatched = count_unmatched_photos(photo_count, diagnostics.successes)
    if unmatched > 0:
        diagnostics.warning(f"{unmatched} photos did not match any available placemark name")


def check_file_name_collisions(
    diagnostics: Diagnostics, records: Sequence[IntegrationRecord]
) -> None:
    """Report generated file names shared by more than one record."""
    counts = Counter(record.file_name for record in records)
    for file_name, count in counts.items():
        if count < 2:
            continue
        message = (
            f"{count} photos share the file name {file_name}; "
            "only the last one is packaged"
        )
        diagnostics.warn(message)
        diagnostics.warning(message)

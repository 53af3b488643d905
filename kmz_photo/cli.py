"""Command-line entry point for the KMZ photo integrator."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Sequence

from .config import IntegrationConfig
from .diagnostics import STATUS_WARNING
from .errors import KmzPhotoError
from .markers import load_map
from .models import MatchPolicy
from .pipeline import merge_files
from .utils import format_file_size

logger = logging.getLogger("kmz_photo.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("merge", *argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _add_merge_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("kmz", type=Path, help="KMZ file holding the ?- placemarks")
    parser.add_argument("photos", type=Path, help="ZIP archive with the photos")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the new KMZ (default: <kmz name>_with_photos.kmz)",
    )
    parser.add_argument(
        "--policy",
        choices=[policy.value for policy in MatchPolicy],
        default=MatchPolicy.MATCH_NAME.value,
        help="Pair photos with placemarks by name or in archive order",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Threads used to read photos from the ZIP archive",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_inspect_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("kmz", type=Path, help="KMZ file to inspect")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Attach photos from a ZIP archive to the ?- placemarks of a KMZ file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    merge_parser = subparsers.add_parser(
        "merge", help="Build a new KMZ with photos attached to matching placemarks"
    )
    _add_merge_arguments(merge_parser)

    inspect_parser = subparsers.add_parser(
        "inspect", help="List the ?- placemarks found in a KMZ file"
    )
    _add_inspect_arguments(inspect_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _run_merge(args: argparse.Namespace) -> None:
    _configure_logging(args.verbose)
    config = IntegrationConfig(max_workers=args.workers)

    overall_start = time.perf_counter()
    output_path, result = merge_files(
        args.kmz,
        args.photos,
        output_path=args.output,
        policy=args.policy,
        config=config,
    )
    total_elapsed = time.perf_counter() - overall_start

    integration = result.integration
    for warning in integration.warnings:
        logger.warning(warning)
    for entry in integration.logs:
        level = logging.WARNING if entry.status == STATUS_WARNING else logging.INFO
        logger.log(level, "[%s] %s", entry.status, entry.message)

    logger.info(
        "Finished in %.2fs: %d placemarks, %d photos, %d integrated -> %s (%s)",
        total_elapsed,
        integration.total_markers,
        integration.total_photos,
        integration.integrated_count,
        output_path,
        format_file_size(len(result.archive)),
    )


def _run_inspect(args: argparse.Namespace) -> None:
    _configure_logging(args.verbose)
    map_data = load_map(Path(args.kmz).read_bytes())
    sys.stdout.write(f"{map_data.document_entry}: {len(map_data.markers)} placemarks\n")
    for marker in map_data.markers:
        location = f"{marker.path}/" if marker.path else ""
        if marker.coordinates is None:
            position = "no coordinates"
        else:
            coords = marker.coordinates
            position = f"{coords.longitude}, {coords.latitude}, {coords.altitude}"
        sys.stdout.write(f"  {location}{marker.name} ({position})\n")
    sys.stdout.flush()


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        if args.command == "merge":
            _run_merge(args)
        else:
            _run_inspect(args)
    except KmzPhotoError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()

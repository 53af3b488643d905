"""MCP server exposing the KMZ photo merge as a tool."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .models import MergeResult
from .pipeline import merge_files

logger = logging.getLogger("kmz_photo.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="kmz-photo")


def summarize(output_path: Path, result: MergeResult) -> str:
    """Render a merge result as Markdown."""
    integration = result.integration
    lines = [
        f"# KMZ written to `{output_path}`",
        "",
        f"- Placemarks: {integration.total_markers}",
        f"- Photos: {integration.total_photos}",
        f"- Integrated: {integration.integrated_count}",
    ]
    if result.warnings:
        lines += ["", "## Warnings", ""]
        lines += [f"- {warning}" for warning in result.warnings]
    lines += ["", "## Log", ""]
    lines += [f"- **{entry.status}**: {entry.message}" for entry in integration.logs]
    return "\n".join(lines) + "\n"


@mcp.tool()
async def merge(
    kmz_path: str,
    photos_path: str,
    policy: str = "match-name",
    output_path: Optional[str] = None,
) -> str:
    """Attach photos from a ZIP archive to the ?- placemarks of a KMZ file."""

    kmz = Path(kmz_path).expanduser()
    photos = Path(photos_path).expanduser()
    for source in (kmz, photos):
        if not source.exists():
            raise FileNotFoundError(f"Input path does not exist: {source}")

    destination = Path(output_path).expanduser() if output_path else None
    written, result = merge_files(kmz, photos, output_path=destination, policy=policy)
    return summarize(written, result)


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()

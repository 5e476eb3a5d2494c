"""Parser dispatch for source tables and documents."""
from __future__ import annotations

import logging
from pathlib import Path

from .base import ParsedTable

logger = logging.getLogger(__name__)

TABLE_SUFFIXES = (".csv", ".xlsx")


def parse_table(path: Path) -> ParsedTable:
    """Parse *path* according to its file extension."""

    suffix = path.suffix.lower()
    if suffix == ".csv":
        from .csv_loader import parse_csv

        return parse_csv(path)
    if suffix == ".xlsx":
        from .xlsx_loader import parse_xlsx

        return parse_xlsx(path)
    raise ValueError(f"Unsupported table format '{path.suffix}' for {path.name}")


def find_table(directory: Path, stem: str) -> Path | None:
    """Return the first existing ``<stem>.csv`` / ``<stem>.xlsx`` in *directory*."""

    for suffix in TABLE_SUFFIXES:
        candidate = directory / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    return None


def load_table(directory: Path, stem: str) -> ParsedTable:
    """Locate and parse the source table named *stem* inside *directory*."""

    path = find_table(directory, stem)
    if path is None:
        raise FileNotFoundError(
            f"Source table '{stem}' not found in {directory} (looked for {', '.join(TABLE_SUFFIXES)})"
        )
    table = parse_table(path)
    logger.info(
        "Loaded %s: %d row(s), %d column(s)",
        table.metadata.get("source", path.name),
        table.row_count,
        len(table.columns),
    )
    return table


__all__ = ["ParsedTable", "TABLE_SUFFIXES", "find_table", "load_table", "parse_table"]

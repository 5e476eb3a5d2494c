from __future__ import annotations

"""Helpers for the wide, one-row-per-country source tables."""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from cdi.ingestion.catalog import EntityCatalog
from cdi.ingestion.parsers import ParsedTable

logger = logging.getLogger(__name__)

COUNTRY_COLUMN = "Country"
ISO_COLUMN = "ISO"
YEAR_COLUMN = "year"
RAW_PREFIX = "Raw:"
ADJUSTED_PREFIX = "Inc.Adj:"
OVERALL_LABEL = "CDI"
MISSING_MARKER = "missing data"
NOT_AVAILABLE = {"n/a", "na", "n.a.", "..", "-"}
_TRUTHY = {"1", "1.0", "true", "yes", "y"}
_META_COLUMNS = {COUNTRY_COLUMN.lower(), ISO_COLUMN.lower(), YEAR_COLUMN.lower()}
_THOUSANDS = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


@dataclass(slots=True)
class CountryRow:
    iso: str
    name: str
    cells: Mapping[str, Optional[str]]


def parse_score(raw: Optional[str]) -> Optional[float]:
    """Return the numeric value of a cell, ``None`` when it holds no measurement."""

    if raw is None:
        return None
    cleaned = raw.replace("%", "").strip()
    if not cleaned or cleaned.lower() in NOT_AVAILABLE:
        return None
    if "," in cleaned:
        if not _THOUSANDS.match(cleaned):
            logger.warning("Cell '%s' is not a number with thousands separators; treating as missing.", raw)
            return None
        cleaned = cleaned.replace(",", "")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if value != value:  # NaN
        return None
    return value


def is_flagged_missing(raw: Optional[str]) -> bool:
    return raw is not None and raw.strip().lower() in _TRUTHY


def is_missing_column(column: str) -> bool:
    return MISSING_MARKER in column.lower()


def score_columns(columns: Sequence[str]) -> List[str]:
    """Columns that carry a measurement, excluding metadata and flag columns."""

    return [
        column
        for column in columns
        if column
        and column.lower() not in _META_COLUMNS
        and not is_missing_column(column)
        and not column.startswith(RAW_PREFIX)
        and not column.startswith(ADJUSTED_PREFIX)
    ]


def prefixed_columns(columns: Sequence[str], prefix: str) -> Dict[str, str]:
    """Map the label after *prefix* to its column, e.g. ``Trade -> "Raw: Trade"``."""

    mapping: Dict[str, str] = {}
    for column in columns:
        if column.startswith(prefix):
            mapping[column[len(prefix):].strip()] = column
    return mapping


def missing_column_for(columns: Sequence[str], column: str) -> Optional[str]:
    """Find the flag column paired with *column*.

    The flag is either named ``"<column> missing data"`` or sits immediately
    to the right of the score column.
    """

    named = f"{column} {MISSING_MARKER}"
    lowered = {candidate.lower(): candidate for candidate in columns}
    if named.lower() in lowered:
        return lowered[named.lower()]
    try:
        index = list(columns).index(column)
    except ValueError:
        return None
    if index + 1 < len(columns) and is_missing_column(columns[index + 1]):
        return columns[index + 1]
    return None


def country_rows(table: ParsedTable, catalog: EntityCatalog) -> List[CountryRow]:
    """Rows with an ISO code, minus excluded countries, first occurrence wins."""

    rows: List[CountryRow] = []
    seen: set[str] = set()
    excluded = 0
    for record in table.records:
        iso = (table.value(record, ISO_COLUMN) or "").strip().upper()
        if not iso:
            continue
        if catalog.is_excluded(iso):
            excluded += 1
            continue
        if iso in seen:
            logger.warning("Duplicate row for country %s ignored.", iso)
            continue
        seen.add(iso)
        name = (table.value(record, COUNTRY_COLUMN) or "").strip() or iso
        rows.append(CountryRow(iso=iso, name=name, cells=record))
    if excluded:
        logger.info("Excluded %d row(s) for countries %s.", excluded, sorted(catalog.excluded_countries))
    return rows


def column_measurements(
    rows: Sequence[CountryRow],
    column: str,
    missing_column: Optional[str] = None,
) -> Dict[str, Optional[float]]:
    """Return ``{iso: value}`` for *column*; ``None`` marks missing data."""

    values: Dict[str, Optional[float]] = {}
    for row in rows:
        if missing_column and is_flagged_missing(row.cells.get(missing_column)):
            values[row.iso] = None
            continue
        values[row.iso] = parse_score(row.cells.get(column))
    return values


def table_year(table: ParsedTable) -> Optional[int]:
    """Return the first value of a ``year`` column, if the table has one."""

    column = next((c for c in table.columns if c.lower() == YEAR_COLUMN), None)
    if column is None:
        return None
    for record in table.records:
        value = parse_score(record.get(column))
        if value is not None:
            return int(value)
    return None


__all__ = [
    "ADJUSTED_PREFIX",
    "CountryRow",
    "OVERALL_LABEL",
    "RAW_PREFIX",
    "column_measurements",
    "country_rows",
    "is_flagged_missing",
    "missing_column_for",
    "parse_score",
    "prefixed_columns",
    "score_columns",
    "table_year",
]

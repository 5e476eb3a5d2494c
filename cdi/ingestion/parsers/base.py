"""Common parsing primitives for source tables."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class ParsedTable:
    """Rows of a wide source table keyed by column header.

    Cells are kept as strings; a column a row does not reach is ``None``.
    """

    columns: List[str]
    records: List[Dict[str, Optional[str]]]
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.records)

    def value(self, row: Dict[str, Optional[str]], column: str) -> Optional[str]:
        """Return the cell for *column*, ``None`` when the row lacks it."""

        return row.get(column)


def clean_header(value: object) -> str:
    """Strip whitespace and a stray byte-order mark from a header cell."""

    return str(value).replace("\ufeff", "").strip() if value is not None else ""


def is_blank(values) -> bool:
    return all(value is None or not str(value).strip() for value in values)

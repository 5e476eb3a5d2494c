"""XLSX parser for source tables."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from openpyxl import load_workbook

from .base import ParsedTable, clean_header, is_blank


def _cell_text(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_xlsx(path: Path, *, worksheet: str | None = None) -> ParsedTable:
    workbook = load_workbook(path, data_only=True, read_only=True)
    try:
        if worksheet:
            if worksheet not in workbook.sheetnames:
                raise ValueError(f"Worksheet '{worksheet}' not found in {path.name}")
            sheet = workbook[worksheet]
        else:
            sheet = workbook.active
        rows = list(sheet.iter_rows(values_only=True))
        title = sheet.title
    finally:
        workbook.close()
    if not rows:
        return ParsedTable(columns=[], records=[], metadata={"worksheet": title, "source": path.name})
    columns = [clean_header(cell) for cell in rows[0]]
    records: List[Dict[str, Optional[str]]] = []
    for row in rows[1:]:
        if is_blank(row):
            continue
        records.append(
            {
                column: _cell_text(row[index]) if index < len(row) else None
                for index, column in enumerate(columns)
            }
        )
    metadata = {
        "columns": columns,
        "worksheet": title,
        "source": path.name,
    }
    return ParsedTable(columns=columns, records=records, metadata=metadata)

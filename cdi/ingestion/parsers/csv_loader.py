"""CSV parser for source tables."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List, Optional

from .base import ParsedTable, clean_header, is_blank


def parse_csv(path: Path, *, encoding: str | None = None, delimiter: str = ",") -> ParsedTable:
    encoding = encoding or "utf-8-sig"
    with path.open("r", encoding=encoding, newline="") as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        header = next(reader, None)
        if header is None:
            return ParsedTable(columns=[], records=[], metadata={"source": path.name})
        columns = [clean_header(cell) for cell in header]
        records: List[Dict[str, Optional[str]]] = []
        for row in reader:
            if is_blank(row):
                continue
            record: Dict[str, Optional[str]] = {}
            for index, column in enumerate(columns):
                record[column] = row[index] if index < len(row) else None
            records.append(record)
    metadata = {
        "columns": columns,
        "encoding": encoding,
        "source": path.name,
    }
    return ParsedTable(columns=columns, records=records, metadata=metadata)

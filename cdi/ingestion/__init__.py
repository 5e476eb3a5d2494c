"""Loading of the entity catalog, source tables and word-processor documents."""
from __future__ import annotations

from .catalog import CatalogError, EntityCatalog, load_catalog
from .parsers import ParsedTable, find_table, load_table, parse_table

__all__ = [
    "CatalogError",
    "EntityCatalog",
    "ParsedTable",
    "find_table",
    "load_catalog",
    "load_table",
    "parse_table",
]

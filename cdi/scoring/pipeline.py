from __future__ import annotations

"""Build ``cdi-data.json`` from the component and subcomponent tables."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from cdi.export.artifacts import CDIData, write_json
from cdi.ingestion.catalog import EntityCatalog, load_catalog
from cdi.ingestion.parsers import find_table, load_table, parse_table
from cdi.normalization.columns import (
    ADJUSTED_PREFIX,
    ISO_COLUMN,
    OVERALL_LABEL,
    RAW_PREFIX,
    CountryRow,
    column_measurements,
    country_rows,
    missing_column_for,
    parse_score,
    prefixed_columns,
    score_columns,
    table_year,
)

from .adjustment import INCOME_TRANSFORMS, income_adjusted_scores
from .assembler import HierarchyAssembler, RankTables
from .ranking import rank_mapping

logger = logging.getLogger(__name__)

Measurements = Dict[str, Optional[float]]


@dataclass(slots=True)
class ScoreSummary:
    """Outcome of one ``scores`` stage run, for logging."""

    countries: int
    components_scored: int
    subcomponents_scored: int
    adjustment_source: str
    output_path: Path
    unmapped_columns: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ComponentColumns:
    """Score columns of the components table keyed by component id.

    The overall index uses the key ``None``.
    """

    raw: Dict[Optional[str], str] = field(default_factory=dict)
    adjusted: Dict[Optional[str], str] = field(default_factory=dict)
    unmapped: List[str] = field(default_factory=list)


def map_component_columns(columns: Sequence[str], catalog: EntityCatalog) -> ComponentColumns:
    """Resolve ``Raw: <label>`` / ``Inc.Adj: <label>`` headers to component ids."""

    resolver = catalog.component_resolver()
    mapped = ComponentColumns()
    for prefix, target in ((RAW_PREFIX, mapped.raw), (ADJUSTED_PREFIX, mapped.adjusted)):
        for label, column in prefixed_columns(columns, prefix).items():
            if label.upper() == OVERALL_LABEL:
                target[None] = column
                continue
            component_id = resolver.resolve(label)
            if component_id is None:
                logger.warning("Column '%s' does not match any component; ignoring.", column)
                mapped.unmapped.append(column)
                continue
            if component_id in target:
                logger.warning(
                    "Column '%s' duplicates component %s already read from '%s'; ignoring.",
                    column,
                    component_id,
                    target[component_id],
                )
                continue
            target[component_id] = column
    return mapped


def map_subcomponent_columns(
    columns: Sequence[str], catalog: EntityCatalog
) -> Tuple[Dict[str, str], List[str]]:
    """Return ``{subcomponent_id: column}`` and the headers that matched nothing."""

    resolver = catalog.subcomponent_resolver()
    mapped: Dict[str, str] = {}
    unmapped: List[str] = []
    for column in score_columns(columns):
        subcomponent_id = resolver.resolve(column)
        if subcomponent_id is None:
            logger.warning("Column '%s' does not match any subcomponent; ignoring.", column)
            unmapped.append(column)
            continue
        mapped.setdefault(subcomponent_id, column)
    return mapped, unmapped


def load_income(data_dir: Path, column: str, catalog: EntityCatalog) -> Optional[Dict[str, float]]:
    """Read ``{iso: income}`` from the optional income table.

    Returns ``None`` when no income table exists so callers can fall back to
    the precomputed adjusted columns.
    """

    path = find_table(data_dir, "income")
    if path is None:
        return None
    table = parse_table(path)
    if column not in table.columns:
        raise ValueError(
            f"Income table {path.name} has no '{column}' column (columns: {', '.join(table.columns)})"
        )
    income: Dict[str, float] = {}
    for record in table.records:
        iso = (table.value(record, ISO_COLUMN) or "").strip().upper()
        if not iso or catalog.is_excluded(iso):
            continue
        value = parse_score(record.get(column))
        if value is not None:
            income[iso] = value
    logger.info("Loaded income values for %d countries from %s", len(income), path.name)
    return income


def _measure(rows: Sequence[CountryRow], columns: Sequence[str], column: str) -> Measurements:
    return column_measurements(rows, column, missing_column_for(columns, column))


def build_rank_tables(
    catalog: EntityCatalog,
    component_rows: Sequence[CountryRow],
    component_columns: Sequence[str],
    subcomponent_rows: Sequence[CountryRow],
    subcomponent_columns: Sequence[str],
    *,
    income: Optional[Dict[str, float]] = None,
    income_transform: str = "linear",
) -> Tuple[RankTables, str, List[str]]:
    """Rank every component, subcomponent and the overall index.

    Returns the tables, where adjusted scores came from (``"income"``,
    ``"columns"`` or ``"none"``) and the unmapped headers.
    """

    mapped = map_component_columns(component_columns, catalog)
    raw: Dict[Optional[str], Measurements] = {
        key: _measure(component_rows, component_columns, column) for key, column in mapped.raw.items()
    }
    for component_id in catalog.components:
        if component_id not in raw:
            logger.warning("No raw score column for component %s.", component_id)

    if income is not None:
        source = "income"
        adjusted = {
            key: income_adjusted_scores(
                values,
                income,
                transform=income_transform,
                label=key or OVERALL_LABEL,
            )
            for key, values in raw.items()
        }
    elif mapped.adjusted:
        source = "columns"
        adjusted = {
            key: _measure(component_rows, component_columns, column)
            for key, column in mapped.adjusted.items()
        }
    else:
        source = "none"
        adjusted = {}
        logger.warning("No income table and no '%s' columns; adjusted scores left missing.", ADJUSTED_PREFIX)

    tables = RankTables()
    if None in raw:
        tables.overall = rank_mapping(raw[None])
    else:
        logger.warning("Components table has no '%s %s' column.", RAW_PREFIX, OVERALL_LABEL)
    if None in adjusted:
        tables.overall_adjusted = rank_mapping(adjusted[None])
    tables.components = {key: rank_mapping(values) for key, values in raw.items() if key is not None}
    tables.components_adjusted = {
        key: rank_mapping(values) for key, values in adjusted.items() if key is not None
    }

    sub_mapped, sub_unmapped = map_subcomponent_columns(subcomponent_columns, catalog)
    tables.subcomponents = {
        subcomponent_id: rank_mapping(_measure(subcomponent_rows, subcomponent_columns, column))
        for subcomponent_id, column in sub_mapped.items()
    }
    return tables, source, mapped.unmapped + sub_unmapped


def _country_list(*row_sets: Sequence[CountryRow]) -> List[Tuple[str, str]]:
    """Union of the countries in *row_sets*, first-seen name wins."""

    names: Dict[str, str] = {}
    for rows in row_sets:
        for row in rows:
            names.setdefault(row.iso, row.name)
    return list(names.items())


def run_pipeline(
    *,
    catalog_path: Path,
    data_dir: Path,
    output_path: Path,
    income_column: str = "GNI per capita",
    income_transform: str = "linear",
    year: Optional[int] = None,
) -> ScoreSummary:
    """Execute the ``scores`` stage end to end."""

    if income_transform not in INCOME_TRANSFORMS:
        raise ValueError(
            f"Unknown income transform '{income_transform}'; expected one of {INCOME_TRANSFORMS}"
        )
    catalog = load_catalog(catalog_path)
    components_table = load_table(data_dir, "components")
    subcomponents_table = load_table(data_dir, "subcomponents")
    component_rows = country_rows(components_table, catalog)
    subcomponent_rows = country_rows(subcomponents_table, catalog)
    if not component_rows:
        logger.warning("Components table contains no country rows.")

    income = load_income(data_dir, income_column, catalog)
    tables, source, unmapped = build_rank_tables(
        catalog,
        component_rows,
        components_table.columns,
        subcomponent_rows,
        subcomponents_table.columns,
        income=income,
        income_transform=income_transform,
    )

    countries = HierarchyAssembler(catalog).assemble(_country_list(component_rows), tables)
    extra = {row.iso for row in subcomponent_rows} - {country.id for country in countries}
    if extra:
        logger.warning(
            "Subcomponents table has %d country row(s) absent from the components table: %s",
            len(extra),
            ", ".join(sorted(extra)),
        )

    resolved_year = (
        year
        or table_year(components_table)
        or catalog.year
        or datetime.utcnow().year
    )
    data = CDIData.from_catalog(catalog, countries, year=resolved_year)
    write_json(output_path, data.to_dict())
    logger.info(
        "Wrote %d countries for %d to %s (adjustment: %s)",
        len(countries),
        resolved_year,
        output_path,
        source,
    )
    return ScoreSummary(
        countries=len(countries),
        components_scored=len(tables.components),
        subcomponents_scored=len(tables.subcomponents),
        adjustment_source=source,
        output_path=output_path,
        unmapped_columns=unmapped,
    )


__all__ = [
    "ComponentColumns",
    "ScoreSummary",
    "build_rank_tables",
    "load_income",
    "map_component_columns",
    "map_subcomponent_columns",
    "run_pipeline",
]

from __future__ import annotations

"""Merge indicator scores from the indicators table into ``cdi-data.json``."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from cdi.export.artifacts import CDIData, load_cdi_data, write_json
from cdi.ingestion.catalog import EntityCatalog, IndicatorDefinition, load_catalog
from cdi.ingestion.parsers import load_table
from cdi.normalization.columns import (
    column_measurements,
    country_rows,
    missing_column_for,
    score_columns,
    table_year,
)

from .assembler import merge_indicators
from .ranking import RankTable, rank_mapping

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IndicatorColumn:
    column: str
    indicator: IndicatorDefinition
    missing_column: Optional[str] = None


@dataclass(slots=True)
class IndicatorSummary:
    indicators: int
    placed: int
    skipped: int
    output_path: Path
    unmapped_columns: List[str] = field(default_factory=list)


def map_indicator_columns(
    columns: Sequence[str], catalog: EntityCatalog
) -> Tuple[List[IndicatorColumn], List[str]]:
    """Pair each score column with an indicator definition.

    Columns are matched against the catalog indicators first. A column that
    instead names a subcomponent exactly is treated as that subcomponent's
    single indicator and added to *catalog* under the subcomponent's id.
    Anything else is reported as unmapped.
    """

    indicator_resolver = catalog.indicator_resolver()
    subcomponent_resolver = catalog.subcomponent_resolver()
    mapped: List[IndicatorColumn] = []
    seen: Dict[str, str] = {}
    unmapped: List[str] = []
    for column in score_columns(columns):
        indicator_id = indicator_resolver.resolve(column)
        if indicator_id is None:
            subcomponent_id = subcomponent_resolver.resolve(column, fuzzy=False)
            if subcomponent_id is not None:
                indicator_id = subcomponent_id
                if indicator_id not in catalog.indicators:
                    subcomponent = catalog.subcomponents[subcomponent_id]
                    catalog.add_indicator(
                        IndicatorDefinition(
                            id=subcomponent_id,
                            name=subcomponent.name,
                            subcomponent_id=subcomponent_id,
                            component_id=subcomponent.component_id,
                            description=subcomponent.description,
                        )
                    )
        if indicator_id is None:
            logger.warning("Column '%s' does not match any indicator; ignoring.", column)
            unmapped.append(column)
            continue
        if indicator_id in seen:
            logger.warning(
                "Column '%s' duplicates indicator %s already read from '%s'; ignoring.",
                column,
                indicator_id,
                seen[indicator_id],
            )
            continue
        seen[indicator_id] = column
        mapped.append(
            IndicatorColumn(
                column=column,
                indicator=catalog.indicators[indicator_id],
                missing_column=missing_column_for(columns, column),
            )
        )
    return mapped, unmapped


def _sync_definitions(data: CDIData, imported: Sequence[IndicatorDefinition]) -> None:
    """Add or replace *imported* definitions in *data* and link them to subcomponents."""

    by_id = {indicator.id: indicator for indicator in data.indicators}
    for indicator in imported:
        by_id[indicator.id] = indicator
    data.indicators = list(by_id.values())
    subcomponents = {subcomponent.id: subcomponent for subcomponent in data.subcomponents}
    for indicator in imported:
        subcomponent = subcomponents.get(indicator.subcomponent_id)
        if subcomponent is not None and indicator.id not in subcomponent.indicators:
            subcomponent.indicators.append(indicator.id)


def run_pipeline(
    *,
    catalog_path: Path,
    data_dir: Path,
    output_path: Path,
    year: Optional[int] = None,
) -> IndicatorSummary:
    """Execute the ``indicators`` stage against an existing ``cdi-data.json``."""

    catalog = load_catalog(catalog_path)
    data = load_cdi_data(output_path)
    table = load_table(data_dir, "indicators")
    rows = country_rows(table, catalog)

    columns, unmapped = map_indicator_columns(table.columns, catalog)
    tables: Dict[str, RankTable] = {}
    for entry in columns:
        values = column_measurements(rows, entry.column, entry.missing_column)
        tables[entry.indicator.id] = rank_mapping(
            values, lower_is_better=entry.indicator.lower_is_better
        )
        absent = sum(1 for value in values.values() if value is None)
        if absent:
            logger.debug("Indicator %s: %d country value(s) missing", entry.indicator.id, absent)

    locations: Dict[str, Tuple[str, str]] = {}
    for indicator_id in tables:
        location = catalog.locate(indicator_id)
        if location is not None:
            locations[indicator_id] = location
    summary = merge_indicators(data.countries, tables, locations)
    _sync_definitions(data, [entry.indicator for entry in columns])

    if year is not None:
        data.year = year
    else:
        data.year = table_year(table) or data.year
    write_json(output_path, data.to_dict())
    logger.info(
        "Merged %d indicator(s) into %d countries (%d placements, %d skipped)",
        len(columns),
        len(data.countries),
        summary.placed,
        len(summary.skipped),
    )
    return IndicatorSummary(
        indicators=len(columns),
        placed=summary.placed,
        skipped=len(summary.skipped),
        output_path=output_path,
        unmapped_columns=unmapped,
    )


__all__ = ["IndicatorColumn", "IndicatorSummary", "map_indicator_columns", "run_pipeline"]

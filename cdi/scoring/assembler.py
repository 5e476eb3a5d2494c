from __future__ import annotations

"""Nest rank tables into one denormalized record per country."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from cdi.ingestion.catalog import EntityCatalog

from .models import ComponentScore, Country, IndicatorScore, SubcomponentScore
from .ranking import MISSING, RankResult, RankTable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RankTables:
    """Independently computed rank tables for every scoring level.

    Component, subcomponent and indicator tables are keyed by entity id and
    then by ISO code.
    """

    overall: RankTable = field(default_factory=dict)
    overall_adjusted: RankTable = field(default_factory=dict)
    components: Dict[str, RankTable] = field(default_factory=dict)
    components_adjusted: Dict[str, RankTable] = field(default_factory=dict)
    subcomponents: Dict[str, RankTable] = field(default_factory=dict)
    indicators: Dict[str, RankTable] = field(default_factory=dict)


@dataclass(slots=True)
class MergeSummary:
    placed: int
    skipped: List[Tuple[str, str]]


def _lookup(table: Mapping[str, RankTable], entity_id: str, iso: str) -> RankResult:
    return table.get(entity_id, {}).get(iso, MISSING)


class HierarchyAssembler:
    """Build :class:`Country` records from the catalog tree and rank tables.

    Every component, subcomponent and indicator in the catalog appears in
    every country record; where a rank table has no entry for a country a
    placeholder carrying the missing-data sentinel is emitted instead.
    """

    def __init__(self, catalog: EntityCatalog) -> None:
        self.catalog = catalog

    def assemble(self, countries: Sequence[Tuple[str, str]], tables: RankTables) -> List[Country]:
        records = [self._country(iso, name, tables) for iso, name in countries]
        records.sort(key=lambda country: (country.rank, country.name))
        return records

    def _country(self, iso: str, name: str, tables: RankTables) -> Country:
        overall = tables.overall.get(iso, MISSING)
        overall_adjusted = tables.overall_adjusted.get(iso, MISSING)
        components: Dict[str, ComponentScore] = {}
        for component_id in self.catalog.components:
            components[component_id] = self._component(iso, component_id, tables)
        return Country(
            id=iso,
            name=name,
            score=overall.display_score,
            score_adjusted=overall_adjusted.display_score,
            rank=overall.rank,
            rank_adjusted=overall_adjusted.rank,
            is_tied=overall.is_tied,
            is_tied_adjusted=overall_adjusted.is_tied,
            components=components,
        )

    def _component(self, iso: str, component_id: str, tables: RankTables) -> ComponentScore:
        raw = _lookup(tables.components, component_id, iso)
        adjusted = _lookup(tables.components_adjusted, component_id, iso)
        subcomponents: Dict[str, SubcomponentScore] = {}
        for subcomponent in self.catalog.subcomponents_of(component_id):
            result = _lookup(tables.subcomponents, subcomponent.id, iso)
            indicators = {
                indicator.id: IndicatorScore.from_rank(_lookup(tables.indicators, indicator.id, iso))
                for indicator in self.catalog.indicators_of(subcomponent.id)
            }
            subcomponents[subcomponent.id] = SubcomponentScore(
                score=result.display_score,
                rank=result.rank,
                is_tied=result.is_tied,
                indicators=indicators,
            )
        return ComponentScore(
            score=raw.display_score,
            score_adjusted=adjusted.display_score,
            rank=raw.rank,
            rank_adjusted=adjusted.rank,
            is_tied=raw.is_tied,
            is_tied_adjusted=adjusted.is_tied,
            subcomponents=subcomponents,
        )


def merge_indicators(
    countries: Iterable[Country],
    indicator_tables: Mapping[str, RankTable],
    locations: Mapping[str, Tuple[str, str]],
) -> MergeSummary:
    """Place indicator results into existing country records.

    *locations* maps indicator id to ``(component_id, subcomponent_id)``.
    Indicators without a location, or whose path is absent from a country
    record, are skipped with a warning. Countries absent from an indicator's
    table receive a missing-data placeholder.
    """

    placed = 0
    skipped: List[Tuple[str, str]] = []
    unlocated = [indicator_id for indicator_id in indicator_tables if indicator_id not in locations]
    for indicator_id in unlocated:
        logger.warning("Indicator %s has no location in the hierarchy; skipping.", indicator_id)
    for country in countries:
        for indicator_id, table in indicator_tables.items():
            location = locations.get(indicator_id)
            if location is None:
                continue
            component_id, subcomponent_id = location
            component = country.components.get(component_id)
            subcomponent = component.subcomponents.get(subcomponent_id) if component else None
            if subcomponent is None:
                logger.warning(
                    "Country %s has no %s/%s node for indicator %s; skipping.",
                    country.id,
                    component_id,
                    subcomponent_id,
                    indicator_id,
                )
                skipped.append((country.id, indicator_id))
                continue
            subcomponent.indicators[indicator_id] = IndicatorScore.from_rank(
                table.get(country.id, MISSING)
            )
            placed += 1
    return MergeSummary(placed=placed, skipped=skipped)


__all__ = ["HierarchyAssembler", "MergeSummary", "RankTables", "merge_indicators"]

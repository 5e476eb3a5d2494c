"""Writers and readers for the JSON artifacts consumed by the website."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from cdi.ingestion.catalog import (
    ComponentDefinition,
    EntityCatalog,
    IndicatorDefinition,
    SubcomponentDefinition,
)
from cdi.scoring.models import (
    ComponentScore,
    Country,
    CountryGroup,
    IndicatorScore,
    SubcomponentScore,
)

logger = logging.getLogger(__name__)

CDI_DATA_FILE = "cdi-data.json"
BLURBS_FILE = "blurbs.json"
COUNTRY_REPORTS_FILE = "country-reports.json"
COUNTRY_GROUPS_FILE = "country-groups.json"
ALL_GROUP_ID = "all"


class ArtifactError(RuntimeError):
    """Raised when a required JSON artifact is unreadable or malformed."""


@dataclass(slots=True)
class CDIData:
    """In-memory form of ``cdi-data.json``."""

    countries: List[Country]
    components: List[ComponentDefinition]
    subcomponents: List[SubcomponentDefinition]
    indicators: List[IndicatorDefinition]
    country_groups: List[CountryGroup] = field(default_factory=list)
    year: int = 0

    def country(self, iso: str) -> Country | None:
        return next((country for country in self.countries if country.id == iso), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "countries": [country.to_dict() for country in self.countries],
            "components": [component.to_dict() for component in self.components],
            "subcomponents": [sub.to_dict() for sub in self.subcomponents],
            "indicators": [indicator.to_dict() for indicator in self.indicators],
            "countryGroups": [group.to_dict() for group in self.country_groups],
            "year": self.year,
        }

    @classmethod
    def from_catalog(
        cls,
        catalog: EntityCatalog,
        countries: List[Country],
        *,
        year: int,
    ) -> "CDIData":
        return cls(
            countries=countries,
            components=list(catalog.components.values()),
            subcomponents=list(catalog.subcomponents.values()),
            indicators=list(catalog.indicators.values()),
            country_groups=build_country_groups(catalog, [country.id for country in countries]),
            year=year,
        )


def build_country_groups(catalog: EntityCatalog, country_ids: Iterable[str]) -> List[CountryGroup]:
    """Return the ``all`` group followed by catalog groups limited to *country_ids*."""

    ordered = list(country_ids)
    known = set(ordered)
    groups = [CountryGroup(id=ALL_GROUP_ID, name="All Countries", country_ids=ordered)]
    for definition in catalog.country_groups.values():
        absent = [code for code in definition.countries if code not in known]
        if absent:
            logger.info(
                "Group %s: %d member(s) not scored and left out: %s",
                definition.id,
                len(absent),
                ", ".join(absent),
            )
        groups.append(
            CountryGroup(
                id=definition.id,
                name=definition.name,
                country_ids=[code for code in definition.countries if code in known],
            )
        )
    return groups


def write_json(path: Path, payload: Any) -> Path:
    """Serialize *payload* to *path*, replacing any previous file."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)
        handle.write("\n")
    return path


def read_json(path: Path) -> Any:
    if not path.exists():
        raise ArtifactError(f"Artifact not found at {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ArtifactError(f"Failed to read {path}: {exc}") from exc


# ----------------------------------------------------------------------
# Reader helpers
# ----------------------------------------------------------------------


def _field(payload: Mapping[str, Any], key: str, kind: type | tuple, where: str) -> Any:
    if key not in payload:
        raise ArtifactError(f"{where}: missing field '{key}'")
    value = payload[key]
    if not isinstance(value, kind):
        raise ArtifactError(f"{where}: field '{key}' has unexpected type {type(value).__name__}")
    return value


def _number(payload: Mapping[str, Any], key: str, where: str) -> float:
    value = _field(payload, key, (int, float), where)
    if isinstance(value, bool):
        raise ArtifactError(f"{where}: field '{key}' must be numeric")
    return float(value)


def _indicator_score(payload: Mapping[str, Any], where: str) -> IndicatorScore:
    return IndicatorScore(
        score=_number(payload, "score", where),
        rank=int(_number(payload, "rank", where)),
        missing_data=_field(payload, "missingData", bool, where),
    )


def _subcomponent_score(payload: Mapping[str, Any], where: str) -> SubcomponentScore:
    indicators = _field(payload, "indicators", dict, where)
    return SubcomponentScore(
        score=_number(payload, "score", where),
        rank=int(_number(payload, "rank", where)),
        is_tied=bool(payload.get("isTied", False)),
        indicators={
            key: _indicator_score(value, f"{where}/{key}") for key, value in indicators.items()
        },
    )


def _component_score(payload: Mapping[str, Any], where: str) -> ComponentScore:
    subcomponents = _field(payload, "subcomponents", dict, where)
    return ComponentScore(
        score=_number(payload, "score", where),
        score_adjusted=_number(payload, "scoreAdjusted", where),
        rank=int(_number(payload, "rank", where)),
        rank_adjusted=int(_number(payload, "rankAdjusted", where)),
        is_tied=_field(payload, "isTied", bool, where),
        is_tied_adjusted=_field(payload, "isTiedAdjusted", bool, where),
        subcomponents={
            key: _subcomponent_score(value, f"{where}/{key}") for key, value in subcomponents.items()
        },
    )


def _country(payload: Mapping[str, Any]) -> Country:
    where = f"country {payload.get('id', '?')}"
    components = _field(payload, "components", dict, where)
    return Country(
        id=_field(payload, "id", str, where),
        name=_field(payload, "name", str, where),
        score=_number(payload, "score", where),
        score_adjusted=_number(payload, "scoreAdjusted", where),
        rank=int(_number(payload, "rank", where)),
        rank_adjusted=int(_number(payload, "rankAdjusted", where)),
        is_tied=_field(payload, "isTied", bool, where),
        is_tied_adjusted=_field(payload, "isTiedAdjusted", bool, where),
        components={
            key: _component_score(value, f"{where}/{key}") for key, value in components.items()
        },
    )


def _component(payload: Mapping[str, Any]) -> ComponentDefinition:
    where = f"component {payload.get('id', '?')}"
    return ComponentDefinition(
        id=_field(payload, "id", str, where),
        name=_field(payload, "name", str, where),
        short_name=payload.get("shortName") or payload["name"],
        color=payload.get("color", ""),
        group=payload.get("group", "global"),
        description=payload.get("description", ""),
        subcomponents=list(payload.get("subcomponents") or []),
    )


def _subcomponent(payload: Mapping[str, Any]) -> SubcomponentDefinition:
    where = f"subcomponent {payload.get('id', '?')}"
    return SubcomponentDefinition(
        id=_field(payload, "id", str, where),
        name=_field(payload, "name", str, where),
        component_id=_field(payload, "componentId", str, where),
        description=payload.get("description", ""),
        subtitle=payload.get("subtitle"),
        weight=payload.get("weight"),
        indicators=list(payload.get("indicators") or []),
    )


def _indicator(payload: Mapping[str, Any]) -> IndicatorDefinition:
    where = f"indicator {payload.get('id', '?')}"
    return IndicatorDefinition(
        id=_field(payload, "id", str, where),
        name=_field(payload, "name", str, where),
        subcomponent_id=payload.get("subcomponentId", ""),
        component_id=payload.get("componentId", ""),
        unit=payload.get("unit", "score"),
        description=payload.get("description", ""),
        lower_is_better=bool(payload.get("lowerIsBetter", False)),
    )


def _group(payload: Mapping[str, Any]) -> CountryGroup:
    where = f"country group {payload.get('id', '?')}"
    return CountryGroup(
        id=_field(payload, "id", str, where),
        name=_field(payload, "name", str, where),
        country_ids=list(_field(payload, "countryIds", list, where)),
    )


def load_cdi_data(path: Path) -> CDIData:
    """Read and validate ``cdi-data.json``; any defect raises :class:`ArtifactError`."""

    payload = read_json(path)
    if not isinstance(payload, Mapping):
        raise ArtifactError(f"{path}: top level must be an object")
    for key in ("countries", "components", "subcomponents", "indicators"):
        if not isinstance(payload.get(key), list):
            raise ArtifactError(f"{path}: '{key}' must be a list")
    try:
        return _cdi_data(payload)
    except (AttributeError, TypeError, KeyError, ValueError) as exc:
        raise ArtifactError(f"{path}: malformed entry: {exc}") from exc


def _cdi_data(payload: Mapping[str, Any]) -> CDIData:
    return CDIData(
        countries=[_country(entry) for entry in payload["countries"]],
        components=[_component(entry) for entry in payload["components"]],
        subcomponents=[_subcomponent(entry) for entry in payload["subcomponents"]],
        indicators=[_indicator(entry) for entry in payload["indicators"]],
        country_groups=[_group(entry) for entry in payload.get("countryGroups") or []],
        year=int(payload.get("year") or 0),
    )


__all__ = [
    "ALL_GROUP_ID",
    "ArtifactError",
    "BLURBS_FILE",
    "CDIData",
    "CDI_DATA_FILE",
    "COUNTRY_GROUPS_FILE",
    "COUNTRY_REPORTS_FILE",
    "build_country_groups",
    "load_cdi_data",
    "read_json",
    "write_json",
]

"""Canonical entity catalog for the index (components, subcomponents, indicators)."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import yaml

from cdi.normalization.resolver import NameResolver, slugify

COMPONENT_GROUPS = ("finance", "exchange", "global")


class CatalogError(RuntimeError):
    """Raised when the entity catalog cannot be loaded."""


@dataclass(slots=True)
class IndicatorDefinition:
    """The finest-grained measured quantity, owned by one subcomponent."""

    id: str
    name: str
    subcomponent_id: str
    component_id: str
    unit: str = "score"
    description: str = ""
    lower_is_better: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "subcomponentId": self.subcomponent_id,
            "componentId": self.component_id,
            "unit": self.unit,
            "description": self.description,
            "lowerIsBetter": self.lower_is_better,
        }


@dataclass(slots=True)
class SubcomponentDefinition:
    id: str
    name: str
    component_id: str
    description: str = ""
    subtitle: str | None = None
    weight: str | None = None
    indicators: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "componentId": self.component_id,
            "description": self.description,
            "indicators": list(self.indicators),
        }
        if self.subtitle is not None:
            payload["subtitle"] = self.subtitle
        if self.weight is not None:
            payload["weight"] = self.weight
        return payload


@dataclass(slots=True)
class ComponentDefinition:
    id: str
    name: str
    short_name: str
    color: str
    group: str
    description: str = ""
    subcomponents: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "shortName": self.short_name,
            "color": self.color,
            "group": self.group,
            "description": self.description,
            "subcomponents": list(self.subcomponents),
        }


@dataclass(slots=True)
class CountryGroupDefinition:
    """Named subset of countries used for display filtering."""

    id: str
    name: str
    countries: Tuple[str, ...]


class EntityCatalog:
    """Strict component → subcomponent → indicator tree plus country metadata."""

    def __init__(
        self,
        components: Iterable[ComponentDefinition],
        subcomponents: Iterable[SubcomponentDefinition],
        indicators: Iterable[IndicatorDefinition] = (),
        *,
        country_groups: Iterable[CountryGroupDefinition] = (),
        excluded_countries: Iterable[str] = (),
        year: int | None = None,
    ) -> None:
        self.components: Dict[str, ComponentDefinition] = {}
        self.subcomponents: Dict[str, SubcomponentDefinition] = {}
        self.indicators: Dict[str, IndicatorDefinition] = {}
        for component in components:
            if component.id in self.components:
                raise CatalogError(f"Duplicate component id '{component.id}'")
            self.components[component.id] = component
        for subcomponent in subcomponents:
            if subcomponent.id in self.subcomponents:
                raise CatalogError(f"Duplicate subcomponent id '{subcomponent.id}'")
            parent = self.components.get(subcomponent.component_id)
            if parent is None:
                raise CatalogError(
                    f"Subcomponent '{subcomponent.id}' references unknown component "
                    f"'{subcomponent.component_id}'"
                )
            self.subcomponents[subcomponent.id] = subcomponent
            if subcomponent.id not in parent.subcomponents:
                parent.subcomponents.append(subcomponent.id)
        for component in self.components.values():
            unknown = [sub_id for sub_id in component.subcomponents if sub_id not in self.subcomponents]
            if unknown:
                raise CatalogError(
                    f"Component '{component.id}' lists undefined subcomponents {unknown}"
                )
        for indicator in indicators:
            self.add_indicator(indicator)
        self.country_groups: Dict[str, CountryGroupDefinition] = {
            group.id: group for group in country_groups
        }
        self.excluded_countries: FrozenSet[str] = frozenset(
            code.strip().upper() for code in excluded_countries
        )
        self.year = year

    def add_indicator(self, indicator: IndicatorDefinition) -> IndicatorDefinition:
        """Attach *indicator* to its subcomponent, enforcing the tree shape."""

        if indicator.id in self.indicators:
            raise CatalogError(f"Duplicate indicator id '{indicator.id}'")
        subcomponent = self.subcomponents.get(indicator.subcomponent_id)
        if subcomponent is None:
            raise CatalogError(
                f"Indicator '{indicator.id}' references unknown subcomponent "
                f"'{indicator.subcomponent_id}'"
            )
        if indicator.component_id != subcomponent.component_id:
            raise CatalogError(
                f"Indicator '{indicator.id}' claims component '{indicator.component_id}' "
                f"but its subcomponent belongs to '{subcomponent.component_id}'"
            )
        self.indicators[indicator.id] = indicator
        if indicator.id not in subcomponent.indicators:
            subcomponent.indicators.append(indicator.id)
        return indicator

    def subcomponents_of(self, component_id: str) -> List[SubcomponentDefinition]:
        component = self.components[component_id]
        return [self.subcomponents[sub_id] for sub_id in component.subcomponents]

    def indicators_of(self, subcomponent_id: str) -> List[IndicatorDefinition]:
        subcomponent = self.subcomponents[subcomponent_id]
        return [self.indicators[ind_id] for ind_id in subcomponent.indicators]

    def locate(self, indicator_id: str) -> Optional[Tuple[str, str]]:
        """Return ``(component_id, subcomponent_id)`` for a known indicator."""

        indicator = self.indicators.get(indicator_id)
        if indicator is None:
            return None
        return indicator.component_id, indicator.subcomponent_id

    def is_excluded(self, iso: str) -> bool:
        return iso.strip().upper() in self.excluded_countries

    def component_resolver(self) -> NameResolver:
        resolver = NameResolver()
        for component in self.components.values():
            resolver.add(component.name, component.id)
            resolver.add(component.short_name, component.id)
        return resolver

    def subcomponent_resolver(self) -> NameResolver:
        return NameResolver((sub.name, sub.id) for sub in self.subcomponents.values())

    def indicator_resolver(self) -> NameResolver:
        return NameResolver((ind.name, ind.id) for ind in self.indicators.values())


def _text(entry: Mapping[str, Any], key: str, default: str = "") -> str:
    value = entry.get(key)
    return str(value).strip() if value is not None else default


def _optional_text(entry: Mapping[str, Any], key: str) -> str | None:
    value = entry.get(key)
    return str(value).strip() if value is not None else None


def _require_name(entry: Any, kind: str) -> str:
    if not isinstance(entry, Mapping):
        raise CatalogError(f"Each {kind} entry must be a mapping, got {entry!r}")
    name = _text(entry, "name")
    if not name:
        raise CatalogError(f"{kind.capitalize()} entry is missing a 'name': {dict(entry)!r}")
    return name


def _parse_components(
    payload: Iterable[Any],
) -> Tuple[List[ComponentDefinition], List[SubcomponentDefinition], List[IndicatorDefinition]]:
    components: List[ComponentDefinition] = []
    subcomponents: List[SubcomponentDefinition] = []
    indicators: List[IndicatorDefinition] = []
    for entry in payload:
        name = _require_name(entry, "component")
        component_id = _text(entry, "id") or slugify(name)
        group = _text(entry, "group", "global").lower()
        if group not in COMPONENT_GROUPS:
            raise CatalogError(
                f"Component '{component_id}' has group '{group}'; expected one of {COMPONENT_GROUPS}"
            )
        components.append(
            ComponentDefinition(
                id=component_id,
                name=name,
                short_name=_text(entry, "short_name") or name,
                color=_text(entry, "color"),
                group=group,
                description=_text(entry, "description"),
            )
        )
        for sub_entry in entry.get("subcomponents") or []:
            sub_name = _require_name(sub_entry, "subcomponent")
            sub_id = _text(sub_entry, "id") or slugify(sub_name)
            weight = sub_entry.get("weight")
            subcomponents.append(
                SubcomponentDefinition(
                    id=sub_id,
                    name=sub_name,
                    component_id=component_id,
                    description=_text(sub_entry, "description"),
                    subtitle=_optional_text(sub_entry, "subtitle"),
                    weight=str(weight) if weight is not None else None,
                )
            )
            for ind_entry in sub_entry.get("indicators") or []:
                ind_name = _require_name(ind_entry, "indicator")
                indicators.append(
                    IndicatorDefinition(
                        id=_text(ind_entry, "id") or slugify(ind_name),
                        name=ind_name,
                        subcomponent_id=sub_id,
                        component_id=component_id,
                        unit=_text(ind_entry, "unit", "score") or "score",
                        description=_text(ind_entry, "description"),
                        lower_is_better=bool(ind_entry.get("lower_is_better", False)),
                    )
                )
    return components, subcomponents, indicators


def _parse_groups(payload: Any) -> List[CountryGroupDefinition]:
    if not payload:
        return []
    if not isinstance(payload, Mapping):
        raise CatalogError("'country_groups' must be a mapping of group key to definition")
    groups: List[CountryGroupDefinition] = []
    for key, entry in payload.items():
        if not isinstance(entry, Mapping):
            raise CatalogError(f"Country group '{key}' must be a mapping")
        countries = entry.get("countries") or []
        groups.append(
            CountryGroupDefinition(
                id=str(key),
                name=_text(entry, "name") or str(key),
                countries=tuple(str(code).strip().upper() for code in countries),
            )
        )
    return groups


def catalog_from_mapping(payload: Mapping[str, Any]) -> EntityCatalog:
    """Build an :class:`EntityCatalog` from an already-parsed mapping."""

    entries = payload.get("components")
    if not entries:
        raise CatalogError("Catalog does not define any entries under 'components'")
    components, subcomponents, indicators = _parse_components(entries)
    year = payload.get("year")
    return EntityCatalog(
        components,
        subcomponents,
        indicators,
        country_groups=_parse_groups(payload.get("country_groups")),
        excluded_countries=[str(code) for code in payload.get("excluded_countries") or []],
        year=int(year) if year is not None else None,
    )


def load_catalog(path: Path | None = None) -> EntityCatalog:
    """Load the YAML catalog located at *path* or the default location."""

    catalog_path = path or Path("config/cdi_catalog.yaml")
    if not catalog_path.exists():
        raise CatalogError(f"Entity catalog not found at {catalog_path}")
    try:
        with catalog_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise CatalogError(f"Failed to parse catalog: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise CatalogError(f"Catalog {catalog_path} must contain a mapping at the top level")
    return catalog_from_mapping(payload)


__all__ = [
    "COMPONENT_GROUPS",
    "CatalogError",
    "ComponentDefinition",
    "CountryGroupDefinition",
    "EntityCatalog",
    "IndicatorDefinition",
    "SubcomponentDefinition",
    "catalog_from_mapping",
    "load_catalog",
]

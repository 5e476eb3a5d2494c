from __future__ import annotations

"""Per-country score records serialized into ``cdi-data.json``."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .ranking import RankResult


@dataclass(slots=True)
class IndicatorScore:
    score: float
    rank: int
    missing_data: bool

    @classmethod
    def from_rank(cls, result: RankResult) -> "IndicatorScore":
        return cls(score=result.display_score, rank=result.rank, missing_data=result.missing)

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "rank": self.rank, "missingData": self.missing_data}


@dataclass(slots=True)
class SubcomponentScore:
    score: float
    rank: int
    is_tied: bool = False
    indicators: Dict[str, IndicatorScore] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "rank": self.rank,
            "isTied": self.is_tied,
            "indicators": {key: value.to_dict() for key, value in self.indicators.items()},
        }


@dataclass(slots=True)
class ComponentScore:
    score: float
    score_adjusted: float
    rank: int
    rank_adjusted: int
    is_tied: bool = False
    is_tied_adjusted: bool = False
    subcomponents: Dict[str, SubcomponentScore] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "scoreAdjusted": self.score_adjusted,
            "rank": self.rank,
            "rankAdjusted": self.rank_adjusted,
            "isTied": self.is_tied,
            "isTiedAdjusted": self.is_tied_adjusted,
            "subcomponents": {key: value.to_dict() for key, value in self.subcomponents.items()},
        }


@dataclass(slots=True)
class Country:
    """Denormalized record for one country, every level inline."""

    id: str
    name: str
    score: float
    score_adjusted: float
    rank: int
    rank_adjusted: int
    is_tied: bool = False
    is_tied_adjusted: bool = False
    components: Dict[str, ComponentScore] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "scoreAdjusted": self.score_adjusted,
            "rank": self.rank,
            "rankAdjusted": self.rank_adjusted,
            "isTied": self.is_tied,
            "isTiedAdjusted": self.is_tied_adjusted,
            "components": {key: value.to_dict() for key, value in self.components.items()},
        }

    def indicator(self, component_id: str, subcomponent_id: str, indicator_id: str) -> Optional[IndicatorScore]:
        component = self.components.get(component_id)
        if component is None:
            return None
        subcomponent = component.subcomponents.get(subcomponent_id)
        if subcomponent is None:
            return None
        return subcomponent.indicators.get(indicator_id)


@dataclass(slots=True)
class CountryGroup:
    id: str
    name: str
    country_ids: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "countryIds": list(self.country_ids)}


__all__ = [
    "ComponentScore",
    "Country",
    "CountryGroup",
    "IndicatorScore",
    "SubcomponentScore",
]

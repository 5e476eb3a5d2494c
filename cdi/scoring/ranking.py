from __future__ import annotations

"""Competition ranking of countries on a single entity."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

MISSING_RANK = 999
"""Rank reserved for missing data; sorts after every real rank."""


@dataclass(slots=True, frozen=True)
class RankResult:
    """Score and position of one country on one entity."""

    score: Optional[float]
    rank: int
    is_tied: bool = False

    @property
    def missing(self) -> bool:
        return self.score is None

    @property
    def display_score(self) -> float:
        return 0.0 if self.score is None else self.score


MISSING = RankResult(score=None, rank=MISSING_RANK, is_tied=False)

RankTable = Dict[str, RankResult]


def rank_scores(
    entries: Iterable[Tuple[str, Optional[float]]],
    *,
    lower_is_better: bool = False,
) -> RankTable:
    """Rank ``(entity_id, score)`` pairs using competition ranking.

    Tied scores share the lower rank number and the next distinct score skips
    accordingly (``1, 1, 3``). ``None`` scores are missing and receive
    :data:`MISSING_RANK`. Ordering among equal scores follows input order.
    """

    present: List[Tuple[str, float]] = []
    results: RankTable = {}
    for entity_id, score in entries:
        if score is None:
            results[entity_id] = MISSING
        else:
            present.append((entity_id, score))

    ordered = sorted(present, key=lambda item: item[1], reverse=not lower_is_better)
    rank = 0
    for index, (entity_id, score) in enumerate(ordered):
        previous = ordered[index - 1][1] if index > 0 else None
        following = ordered[index + 1][1] if index + 1 < len(ordered) else None
        if previous is None or previous != score:
            rank = index + 1
        results[entity_id] = RankResult(
            score=score,
            rank=rank,
            is_tied=score == previous or score == following,
        )
    return results


def rank_mapping(values: Mapping[str, Optional[float]], *, lower_is_better: bool = False) -> RankTable:
    """Convenience wrapper over :func:`rank_scores` for ``{id: score}`` input."""

    return rank_scores(values.items(), lower_is_better=lower_is_better)


__all__ = ["MISSING", "MISSING_RANK", "RankResult", "RankTable", "rank_mapping", "rank_scores"]

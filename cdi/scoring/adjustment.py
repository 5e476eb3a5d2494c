from __future__ import annotations

"""Income adjustment: distance of each score from an OLS line fitted on income."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)

INCOME_TRANSFORMS = ("linear", "log")
ROUND_PRECISION = 4


@dataclass(slots=True, frozen=True)
class IncomeFit:
    """Fitted ``score = intercept + slope * income`` line."""

    intercept: float
    slope: float
    mean_score: float
    observations: int

    def expected(self, income: float) -> float:
        return self.intercept + self.slope * income


def transform_income(value: float, transform: str = "linear") -> Optional[float]:
    if transform == "linear":
        return value
    if transform == "log":
        return math.log(value) if value > 0 else None
    raise ValueError(f"Unknown income transform '{transform}'; expected one of {INCOME_TRANSFORMS}")


def fit_income_line(
    scores: Mapping[str, Optional[float]],
    income: Mapping[str, float],
    *,
    transform: str = "linear",
) -> Optional[IncomeFit]:
    """Fit an OLS line through countries having both a score and income.

    Returns ``None`` when fewer than two distinct income values are available.
    """

    xs: List[float] = []
    ys: List[float] = []
    for iso, score in scores.items():
        if score is None or iso not in income:
            continue
        x = transform_income(income[iso], transform)
        if x is None:
            continue
        xs.append(x)
        ys.append(score)
    if len(set(xs)) < 2:
        return None
    slope, intercept = np.polyfit(np.asarray(xs, dtype=float), np.asarray(ys, dtype=float), 1)
    return IncomeFit(
        intercept=float(intercept),
        slope=float(slope),
        mean_score=float(np.mean(ys)),
        observations=len(xs),
    )


def income_adjusted_scores(
    scores: Mapping[str, Optional[float]],
    income: Mapping[str, float],
    *,
    transform: str = "linear",
    label: str = "",
) -> Dict[str, Optional[float]]:
    """Return residual-based adjusted scores for every country in *scores*.

    The residual (actual minus expected) is shifted by the mean fitted score
    so adjusted scores sit on the same scale and order as raw scores. Countries
    without a score or income value are missing (``None``).
    """

    fit = fit_income_line(scores, income, transform=transform)
    if fit is None:
        logger.warning(
            "Not enough income observations to adjust %s; adjusted scores left missing.",
            label or "scores",
        )
        return {iso: None for iso in scores}
    logger.debug(
        "Income fit for %s: intercept=%.4f slope=%.6f n=%d",
        label or "scores",
        fit.intercept,
        fit.slope,
        fit.observations,
    )
    adjusted: Dict[str, Optional[float]] = {}
    for iso, score in scores.items():
        x = transform_income(income[iso], transform) if iso in income else None
        if score is None or x is None:
            adjusted[iso] = None
            continue
        adjusted[iso] = round(score - fit.expected(x) + fit.mean_score, ROUND_PRECISION)
    return adjusted


__all__ = [
    "INCOME_TRANSFORMS",
    "IncomeFit",
    "fit_income_line",
    "income_adjusted_scores",
    "transform_income",
]

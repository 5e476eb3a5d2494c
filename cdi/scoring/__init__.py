"""CDI scoring stages."""
from __future__ import annotations

import logging

from cdi.core import register_stage
from cdi.core.stage import StageContext

logger = logging.getLogger(__name__)


@register_stage("scores", "Rank components and subcomponents into cdi-data.json.", order=10)
def run_scores(context: StageContext) -> None:
    """Rank the component and subcomponent tables and write the main artifact."""

    from .pipeline import run_pipeline

    settings = context.settings
    logger.info(
        "Starting scores with data directory %s and catalog %s",
        settings.data_dir,
        settings.catalog_path,
    )
    try:
        summary = run_pipeline(
            catalog_path=settings.catalog_path,
            data_dir=settings.data_dir,
            output_path=settings.data_path,
            income_column=settings.income_column,
            income_transform=settings.income_transform,
            year=settings.year,
        )
    except FileNotFoundError as exc:
        logger.error("Score input missing: %s", exc)
        raise
    logger.info(
        "Scores summary: %d countries, %d component(s), %d subcomponent(s), adjustment from %s",
        summary.countries,
        summary.components_scored,
        summary.subcomponents_scored,
        summary.adjustment_source,
    )
    if summary.unmapped_columns:
        logger.warning("Unmapped columns: %s", ", ".join(summary.unmapped_columns))


@register_stage("indicators", "Merge indicator scores into cdi-data.json.", order=20)
def run_indicators(context: StageContext) -> None:
    """Rank every indicator column and place results in the country records."""

    from .indicators import run_pipeline

    settings = context.settings
    try:
        summary = run_pipeline(
            catalog_path=settings.catalog_path,
            data_dir=settings.data_dir,
            output_path=settings.data_path,
            year=settings.year,
        )
    except FileNotFoundError as exc:
        logger.error("Indicator input missing: %s", exc)
        raise
    logger.info(
        "Indicators summary: %d indicator(s), %d placement(s), %d skipped",
        summary.indicators,
        summary.placed,
        summary.skipped,
    )
    if summary.unmapped_columns:
        logger.warning("Unmapped columns: %s", ", ".join(summary.unmapped_columns))

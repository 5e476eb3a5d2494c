"""Narrative content stages (blurbs and country reports)."""
from __future__ import annotations

import logging

from cdi.core import register_stage
from cdi.core.stage import StageContext
from cdi.export.artifacts import BLURBS_FILE, COUNTRY_REPORTS_FILE

from .blurbs import run_pipeline as run_blurbs_pipeline
from .reports import run_pipeline as run_reports_pipeline

logger = logging.getLogger(__name__)


@register_stage("blurbs", "Import blurbs.docx into blurbs.json.", order=30)
def run_blurbs(context: StageContext) -> None:
    settings = context.settings
    summary = run_blurbs_pipeline(
        catalog_path=settings.catalog_path,
        document_path=settings.data_dir / "blurbs.docx",
        output_path=settings.output_dir / BLURBS_FILE,
        data_path=settings.data_path,
    )
    if summary.minted:
        logger.warning("%d blurb heading(s) used generated ids: %s", len(summary.minted), ", ".join(summary.minted))
    if summary.skipped:
        logger.warning("%d blurb heading(s) skipped: %s", len(summary.skipped), ", ".join(summary.skipped))


@register_stage("reports", "Import country report documents into country-reports.json.", order=40)
def run_reports(context: StageContext) -> None:
    settings = context.settings
    summary = run_reports_pipeline(
        catalog_path=settings.catalog_path,
        reports_dir=settings.reports_dir,
        output_path=settings.output_dir / COUNTRY_REPORTS_FILE,
    )
    if summary.failed:
        logger.warning("%d report(s) could not be read: %s", len(summary.failed), ", ".join(summary.failed))

from __future__ import annotations

"""Import per-country narrative reports into ``country-reports.json``."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from cdi.export.artifacts import write_json
from cdi.ingestion.catalog import EntityCatalog, load_catalog
from cdi.ingestion.parsers.docx_loader import DocumentError, parse_docx, split_sections
from cdi.normalization.resolver import NameResolver

logger = logging.getLogger(__name__)

REPORT_LEVELS = (1, 2)
OVERALL_TITLE = "overall"


@dataclass(slots=True)
class CountryReport:
    country_code: str
    country_name: str
    overall: str = ""
    components: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "countryCode": self.country_code,
            "countryName": self.country_name,
            "overall": self.overall,
            "components": dict(self.components),
        }


@dataclass(slots=True)
class ReportSummary:
    reports: int
    failed: List[str]
    output_path: Path


def parse_report(path: Path, catalog: EntityCatalog, resolver: Optional[NameResolver] = None) -> CountryReport:
    """Read one ``<ISO>.docx`` report.

    The first heading names the country. Every catalog component gets an
    entry, empty when the document has no section for it.
    """

    resolver = resolver or catalog.component_resolver()
    code = path.stem.strip().upper()
    document = parse_docx(path)
    logger.debug(
        "Parsed %s: %d block(s), %d section heading(s)",
        document.metadata["source"],
        document.metadata["blocks"],
        len(document.headings(REPORT_LEVELS)),
    )
    sections = split_sections(document.blocks, REPORT_LEVELS)
    report = CountryReport(
        country_code=code,
        country_name=sections[0].title if sections else code,
        components={component_id: "" for component_id in catalog.components},
    )
    for section in sections[1:]:
        if section.title.strip().lower() == OVERALL_TITLE:
            report.overall = section.html
            continue
        component_id = resolver.resolve(section.title, fuzzy=False)
        if component_id is None:
            logger.debug("%s: section '%s' is not a component; ignoring.", path.name, section.title)
            continue
        report.components[component_id] = section.html
    return report


def run_pipeline(*, catalog_path: Path, reports_dir: Path, output_path: Path) -> ReportSummary:
    """Parse every report in *reports_dir* and write them keyed by country code."""

    if not reports_dir.is_dir():
        raise FileNotFoundError(f"Country reports directory not found at {reports_dir}")
    catalog = load_catalog(catalog_path)
    resolver = catalog.component_resolver()
    files = sorted(
        path for path in reports_dir.iterdir() if path.suffix.lower() == ".docx" and not path.name.startswith("~$")
    )
    logger.info("Found %d country report document(s) in %s", len(files), reports_dir)

    reports: Dict[str, Dict[str, object]] = {}
    failed: List[str] = []
    for path in files:
        try:
            report = parse_report(path, catalog, resolver)
        except DocumentError as exc:
            logger.error("Skipping %s: %s", path.name, exc)
            failed.append(path.name)
            continue
        if catalog.is_excluded(report.country_code):
            logger.info("Skipping report for excluded country %s", report.country_code)
            continue
        empty = [key for key, value in report.components.items() if not value]
        if empty:
            logger.debug("%s: no text for %s", report.country_code, ", ".join(empty))
        reports[report.country_code] = report.to_dict()

    write_json(output_path, reports)
    logger.info("Wrote %d country report(s) to %s", len(reports), output_path)
    return ReportSummary(reports=len(reports), failed=failed, output_path=output_path)


__all__ = ["CountryReport", "OVERALL_TITLE", "REPORT_LEVELS", "ReportSummary", "parse_report", "run_pipeline"]

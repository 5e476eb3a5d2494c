from __future__ import annotations

"""Import the explanatory blurbs document into ``blurbs.json``."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from cdi.export.artifacts import ArtifactError, load_cdi_data, write_json
from cdi.ingestion.catalog import EntityCatalog, load_catalog
from cdi.ingestion.parsers.docx_loader import Section, parse_docx, split_sections
from cdi.normalization.resolver import NameResolver

logger = logging.getLogger(__name__)

BLURB_LEVELS = (1, 2, 3)


@dataclass(slots=True)
class BlurbSummary:
    components: int
    subcomponents: int
    indicators: int
    output_path: Path
    minted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class BlurbBuilder:
    """Fold heading sections into the nested blurbs mapping.

    Level 1 headings open a component, level 2 a subcomponent of the current
    component and level 3 an indicator of the current subcomponent.
    """

    def __init__(self, resolvers: Dict[int, NameResolver]) -> None:
        self.resolvers = resolvers
        self.output: Dict[str, Dict[str, Any]] = {}
        self.minted: List[str] = []
        self.skipped: List[str] = []
        self._component: Optional[Dict[str, Any]] = None
        self._subcomponent: Optional[Dict[str, Any]] = None

    def _identify(self, section: Section) -> str:
        entity_id, minted = self.resolvers[section.level].resolve_or_mint(section.title)
        if minted:
            logger.warning(
                "Heading '%s' did not match an existing id; using generated id '%s'.",
                section.title,
                entity_id,
            )
            self.minted.append(entity_id)
        return entity_id

    def add(self, section: Section) -> None:
        if section.level == 1:
            entry = {"name": section.title, "description": section.html, "subcomponents": {}}
            self.output[self._identify(section)] = entry
            self._component = entry
            self._subcomponent = None
        elif section.level == 2:
            if self._component is None:
                logger.warning("Subcomponent heading '%s' precedes any component; skipping.", section.title)
                self.skipped.append(section.title)
                return
            entry = {"name": section.title, "description": section.html, "indicators": {}}
            self._component["subcomponents"][self._identify(section)] = entry
            self._subcomponent = entry
        elif section.level == 3:
            if self._subcomponent is None:
                logger.warning("Indicator heading '%s' has no enclosing subcomponent; skipping.", section.title)
                self.skipped.append(section.title)
                return
            self._subcomponent["indicators"][self._identify(section)] = {
                "name": section.title,
                "description": section.html,
            }


def build_resolvers(catalog: EntityCatalog, data_path: Optional[Path] = None) -> Dict[int, NameResolver]:
    """Per-heading-level resolvers; indicators imported into *data_path* are included."""

    indicators = catalog.indicator_resolver()
    if data_path is not None and data_path.exists():
        try:
            data = load_cdi_data(data_path)
        except ArtifactError as exc:
            logger.warning("Ignoring unreadable %s for blurb ids: %s", data_path, exc)
        else:
            for indicator in data.indicators:
                indicators.add(indicator.name, indicator.id)
    return {1: catalog.component_resolver(), 2: catalog.subcomponent_resolver(), 3: indicators}


def run_pipeline(
    *,
    catalog_path: Path,
    document_path: Path,
    output_path: Path,
    data_path: Optional[Path] = None,
) -> BlurbSummary:
    """Parse *document_path* and write the nested blurbs mapping to *output_path*."""

    if not document_path.exists():
        raise FileNotFoundError(f"Blurbs document not found at {document_path}")
    catalog = load_catalog(catalog_path)
    document = parse_docx(document_path)
    logger.info(
        "Parsed %s: %d block(s), %d blurb heading(s)",
        document.metadata["source"],
        document.metadata["blocks"],
        len(document.headings(BLURB_LEVELS)),
    )
    builder = BlurbBuilder(build_resolvers(catalog, data_path))
    for section in split_sections(document.blocks, BLURB_LEVELS):
        builder.add(section)

    write_json(output_path, builder.output)
    subcomponents = [sub for entry in builder.output.values() for sub in entry["subcomponents"].values()]
    summary = BlurbSummary(
        components=len(builder.output),
        subcomponents=len(subcomponents),
        indicators=sum(len(sub["indicators"]) for sub in subcomponents),
        output_path=output_path,
        minted=builder.minted,
        skipped=builder.skipped,
    )
    logger.info(
        "Wrote %s: %d components, %d subcomponents, %d indicators",
        output_path,
        summary.components,
        summary.subcomponents,
        summary.indicators,
    )
    return summary


__all__ = ["BLURB_LEVELS", "BlurbBuilder", "BlurbSummary", "build_resolvers", "run_pipeline"]

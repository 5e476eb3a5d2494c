"""CDI export stage and JSON artifact helpers."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from cdi.core import register_stage
from cdi.core.stage import StageContext
from cdi.ingestion.catalog import EntityCatalog, load_catalog

from .artifacts import (
    ALL_GROUP_ID,
    COUNTRY_GROUPS_FILE,
    ArtifactError,
    CDIData,
    build_country_groups,
    load_cdi_data,
    write_json,
)

logger = logging.getLogger(__name__)


def country_groups_payload(catalog: EntityCatalog, country_ids: Optional[List[str]] = None) -> Dict[str, Dict[str, object]]:
    """Shape country groups as ``{key: {name, countries}}``.

    With *country_ids* the groups are limited to scored countries and the
    ``all`` group is included; without them the catalog lists are used as-is.
    """

    if country_ids is None:
        return {
            group.id: {"name": group.name, "countries": list(group.countries)}
            for group in catalog.country_groups.values()
        }
    return {
        group.id: {"name": group.name, "countries": list(group.country_ids)}
        for group in build_country_groups(catalog, country_ids)
    }


def export_country_groups(*, catalog_path: Path, data_path: Path, output_path: Path) -> Dict[str, Dict[str, object]]:
    catalog = load_catalog(catalog_path)
    country_ids: Optional[List[str]] = None
    if data_path.exists():
        country_ids = [country.id for country in load_cdi_data(data_path).countries]
    else:
        logger.warning("%s not found; writing catalog groups without filtering.", data_path)
    payload = country_groups_payload(catalog, country_ids)
    write_json(output_path, payload)
    return payload


@register_stage("groups", "Write country-groups.json for the website filters.", order=50)
def run(context: StageContext) -> None:
    """Write the country group definitions next to the main artifact."""

    settings = context.settings
    output_path = settings.output_dir / COUNTRY_GROUPS_FILE
    payload = export_country_groups(
        catalog_path=settings.catalog_path,
        data_path=settings.data_path,
        output_path=output_path,
    )
    for key, group in payload.items():
        logger.info("Group %s (%s): %d countries", key, group["name"], len(group["countries"]))
    logger.info("Country groups written to %s", output_path)


__all__ = [
    "ALL_GROUP_ID",
    "ArtifactError",
    "CDIData",
    "country_groups_payload",
    "export_country_groups",
    "load_cdi_data",
    "write_json",
]

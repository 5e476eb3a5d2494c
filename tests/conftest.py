from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Sequence

import pytest

from cdi.core.stage import StageContext
from cdi.settings import Settings

CATALOG_YAML = """\
year: 2025
excluded_countries: [ISR]
components:
  - id: trade
    name: Trade
    color: "rgb(1, 2, 3)"
    group: exchange
    subcomponents:
      - name: Tariffs
      - name: Agricultural Subsidies
  - id: migration
    name: Migration
    group: exchange
    subcomponents:
      - name: Refugee Hosting
        indicators:
          - id: refugees
            name: Refugees Hosted
          - id: wait-time
            name: Asylum Wait Time
            unit: days
            lower_is_better: true
country_groups:
  nordic:
    name: Nordic
    countries: [SWE, NOR, DNK, ISL]
"""


@pytest.fixture
def catalog_path(tmp_path: Path) -> Path:
    """Write a two-component catalog and return its path."""

    path = tmp_path / "config" / "cdi_catalog.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CATALOG_YAML, encoding="utf-8")
    return path


@pytest.fixture
def write_csv() -> Callable[[Path, Sequence[str], Iterable[Sequence[object]]], Path]:
    def _write(path: Path, header: Sequence[str], rows: Iterable[Sequence[object]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(header)
            for row in rows:
                writer.writerow(row)
        return path

    return _write


@pytest.fixture
def stage_context(tmp_path: Path, catalog_path: Path) -> StageContext:
    """Create a temporary stage context for tests."""

    settings = Settings(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "public" / "data",
        catalog_path=catalog_path,
        reports_dir=tmp_path / "data" / "country-reports",
        income_column="GNI per capita",
        income_transform="linear",
        year=None,
        log_level="INFO",
    )
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.ensure_directories()
    return StageContext(
        settings=settings,
        run_id="test-run",
        timestamp=datetime(2025, 1, 1, 12, 0, 0),
        workspace=tmp_path,
    )


COMPONENT_HEADER: List[str] = [
    "Country",
    "ISO",
    "Raw: CDI",
    "Inc.Adj: CDI",
    "Raw: Trade",
    "Inc.Adj: Trade",
    "Raw: Migration",
    "Inc.Adj: Migration",
]


@pytest.fixture
def score_tables(stage_context: StageContext, write_csv) -> Path:
    """Components and subcomponents tables for four scored countries plus one excluded."""

    data_dir = stage_context.settings.data_dir
    write_csv(
        data_dir / "components.csv",
        COMPONENT_HEADER,
        [
            ["Sweden", "SWE", "85.3", "80.1", "50.0", "51.0", "70.0", "69.0"],
            ["Norway", "NOR", "80.0", "81.2", "50.0", "49.0", "60.0", "61.0"],
            ["Denmark", "DNK", "78.5", "77.0", "49.9", "50.5", "65.0", "64.0"],
            ["Japan", "JPN", "60.0", "62.0", "40.0", "41.0", "N/A", ""],
            ["Israel", "ISR", "90.0", "90.0", "90.0", "90.0", "90.0", "90.0"],
            ["", "", "", "", "", "", "", ""],
        ],
    )
    write_csv(
        data_dir / "subcomponents.csv",
        ["Country", "ISO", "Tariffs", "Agricultural Subsidies", "Refugee Hosting", "Unknown Thing"],
        [
            ["Sweden", "SWE", "7.5", "3.0", "9.0", "1"],
            ["Norway", "NOR", "6.0", "3.0", "8.0", "2"],
            ["Denmark", "DNK", "5.0", "4.0"],
            ["Japan", "JPN", "8.0", "", "2.0", "3"],
        ],
    )
    return data_dir

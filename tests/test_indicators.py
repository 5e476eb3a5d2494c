from __future__ import annotations

import json
from pathlib import Path

import pytest

from cdi.export.artifacts import ArtifactError, load_cdi_data
from cdi.ingestion.catalog import load_catalog
from cdi.scoring import run_indicators, run_scores
from cdi.scoring.indicators import map_indicator_columns
from cdi.scoring.ranking import MISSING_RANK

INDICATOR_HEADER = [
    "Country",
    "ISO",
    "year",
    "Refugees Hosted",
    "Refugees Hosted missing data",
    "Asylum Wait Time",
    "Asylum Wait Time missing data",
    "Tariffs",
    "Tariffs missing data",
    "Mystery Metric",
]


@pytest.fixture
def indicator_table(stage_context, score_tables: Path, write_csv) -> Path:
    return write_csv(
        stage_context.settings.data_dir / "indicators.csv",
        INDICATOR_HEADER,
        [
            ["Sweden", "SWE", "2024", "12.0", "0", "30", "0", "4.5", "0", "1"],
            ["Norway", "NOR", "2024", "8.0", "0", "10", "0", "4.5", "0", "1"],
            ["Denmark", "DNK", "2024", "3.0", "1", "20", "0", "N/A", "0", "1"],
            ["Israel", "ISR", "2024", "99", "0", "1", "0", "9", "0", "1"],
        ],
    )


def _countries(stage_context) -> dict:
    payload = json.loads(stage_context.settings.data_path.read_text(encoding="utf-8"))
    return {country["id"]: country for country in payload["countries"]}


def test_flagged_missing_indicator_gets_sentinel(stage_context, indicator_table: Path) -> None:
    run_scores(stage_context)
    run_indicators(stage_context)
    countries = _countries(stage_context)

    refugees = {
        iso: country["components"]["migration"]["subcomponents"]["refugee-hosting"]["indicators"]["refugees"]
        for iso, country in countries.items()
    }
    assert refugees["DNK"] == {"score": 0, "rank": MISSING_RANK, "missingData": True}
    assert refugees["SWE"] == {"score": 12.0, "rank": 1, "missingData": False}
    assert refugees["NOR"]["rank"] == 2
    # absent from the indicators table entirely
    assert refugees["JPN"]["missingData"] is True


def test_lower_is_better_indicator(stage_context, indicator_table: Path) -> None:
    run_scores(stage_context)
    run_indicators(stage_context)
    countries = _countries(stage_context)

    wait = {
        iso: country["components"]["migration"]["subcomponents"]["refugee-hosting"]["indicators"]["wait-time"]["rank"]
        for iso, country in countries.items()
    }
    assert (wait["NOR"], wait["DNK"], wait["SWE"]) == (1, 2, 3)


def test_subcomponent_named_column_becomes_its_indicator(stage_context, indicator_table: Path) -> None:
    run_scores(stage_context)
    run_indicators(stage_context)
    data = load_cdi_data(stage_context.settings.data_path)

    assert "tariffs" in {indicator.id for indicator in data.indicators}
    tariffs_sub = next(sub for sub in data.subcomponents if sub.id == "tariffs")
    assert tariffs_sub.indicators == ["tariffs"]
    sweden = data.country("SWE")
    assert sweden.indicator("trade", "tariffs", "tariffs").rank == 1
    assert data.country("NOR").indicator("trade", "tariffs", "tariffs").rank == 1
    assert data.country("DNK").indicator("trade", "tariffs", "tariffs").missing_data is True
    assert data.year == 2024


def test_column_mapping_reports_unmapped(catalog_path: Path) -> None:
    catalog = load_catalog(catalog_path)
    columns, unmapped = map_indicator_columns(INDICATOR_HEADER, catalog)

    assert [column.indicator.id for column in columns] == ["refugees", "wait-time", "tariffs"]
    assert columns[0].missing_column == "Refugees Hosted missing data"
    assert unmapped == ["Mystery Metric"]
    assert catalog.locate("tariffs") == ("trade", "tariffs")


def test_indicators_require_existing_artifact(stage_context, indicator_table: Path) -> None:
    with pytest.raises(ArtifactError):
        run_indicators(stage_context)


def test_malformed_artifact_is_rejected(stage_context, indicator_table: Path) -> None:
    stage_context.settings.data_path.write_text(
        json.dumps({"countries": [{"id": "SWE"}], "components": [], "subcomponents": [], "indicators": []}),
        encoding="utf-8",
    )
    with pytest.raises(ArtifactError):
        run_indicators(stage_context)

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from docx import Document

from cdi.content import run_blurbs, run_reports
from cdi.content.reports import parse_report
from cdi.ingestion.catalog import load_catalog


def _write_blurbs(path: Path) -> Path:
    document = Document()
    document.add_heading("Orphan Subcomponent", level=2)
    document.add_paragraph("Dropped because no component precedes it.")
    document.add_heading("Trade", level=1)
    document.add_paragraph("Trade policy shapes market access.")
    document.add_heading("Tariffs", level=2)
    document.add_paragraph("Average tariff rates.")
    document.add_heading("Applied Tariff Rate", level=3)
    document.add_paragraph("Weighted by import volume.")
    document.add_heading("Migration", level=1)
    document.add_heading("Refugee Hosting", level=2)
    document.add_heading("Refugees Hosted", level=3)
    document.add_paragraph("Refugees per capita.")
    document.add_heading("Ocean Health", level=1)
    path.parent.mkdir(parents=True, exist_ok=True)
    document.save(path)
    return path


def test_blurbs_nest_by_heading_level(stage_context, caplog: pytest.LogCaptureFixture) -> None:
    settings = stage_context.settings
    _write_blurbs(settings.data_dir / "blurbs.docx")

    with caplog.at_level(logging.WARNING):
        run_blurbs(stage_context)
    blurbs = json.loads((settings.output_dir / "blurbs.json").read_text(encoding="utf-8"))

    assert list(blurbs) == ["trade", "migration", "ocean-health"]
    trade = blurbs["trade"]
    assert trade["name"] == "Trade"
    assert trade["description"] == "<p>Trade policy shapes market access.</p>"
    assert trade["subcomponents"]["tariffs"]["description"] == "<p>Average tariff rates.</p>"
    assert trade["subcomponents"]["tariffs"]["indicators"] == {
        "applied-tariff-rate": {"name": "Applied Tariff Rate", "description": "<p>Weighted by import volume.</p>"}
    }
    refugees = blurbs["migration"]["subcomponents"]["refugee-hosting"]["indicators"]
    assert refugees == {"refugees": {"name": "Refugees Hosted", "description": "<p>Refugees per capita.</p>"}}
    assert blurbs["ocean-health"]["subcomponents"] == {}
    assert "ocean-health" in caplog.text
    assert "Orphan Subcomponent" in caplog.text


def test_blurbs_stage_logs_heading_count(stage_context, caplog: pytest.LogCaptureFixture) -> None:
    _write_blurbs(stage_context.settings.data_dir / "blurbs.docx")

    with caplog.at_level(logging.INFO, logger="cdi.content.blurbs"):
        run_blurbs(stage_context)

    assert "Parsed blurbs.docx" in caplog.text
    assert "8 blurb heading(s)" in caplog.text


def test_blurbs_document_is_required(stage_context) -> None:
    with pytest.raises(FileNotFoundError):
        run_blurbs(stage_context)


def _write_report(path: Path, country: str, sections: dict) -> Path:
    document = Document()
    document.add_heading(country, level=1)
    for title, text in sections.items():
        document.add_heading(title, level=2)
        document.add_paragraph(text)
    path.parent.mkdir(parents=True, exist_ok=True)
    document.save(path)
    return path


def test_parse_report_maps_sections_to_components(catalog_path: Path, tmp_path: Path) -> None:
    path = _write_report(
        tmp_path / "swe.docx",
        "Sweden",
        {"Overall": "Sweden leads.", "Trade": "Low tariffs.", "Annex": "Ignored."},
    )
    report = parse_report(path, load_catalog(catalog_path))

    assert report.to_dict() == {
        "countryCode": "SWE",
        "countryName": "Sweden",
        "overall": "<p>Sweden leads.</p>",
        "components": {"trade": "<p>Low tariffs.</p>", "migration": ""},
    }


def test_reports_stage_skips_unreadable_documents(stage_context) -> None:
    settings = stage_context.settings
    _write_report(settings.reports_dir / "NOR.docx", "Norway", {"Migration": "Generous hosting."})
    _write_report(settings.reports_dir / "ISR.docx", "Israel", {"Overall": "Excluded."})
    (settings.reports_dir / "BAD.docx").write_text("not a document", encoding="utf-8")
    (settings.reports_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    run_reports(stage_context)
    reports = json.loads((settings.output_dir / "country-reports.json").read_text(encoding="utf-8"))

    assert list(reports) == ["NOR"]
    assert reports["NOR"]["countryName"] == "Norway"
    assert reports["NOR"]["overall"] == ""
    assert reports["NOR"]["components"]["migration"] == "<p>Generous hosting.</p>"


def test_reports_directory_is_required(stage_context) -> None:
    with pytest.raises(FileNotFoundError):
        run_reports(stage_context)

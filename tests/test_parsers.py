from __future__ import annotations

import logging
from pathlib import Path

import pytest
from docx import Document
from openpyxl import Workbook

from cdi.ingestion.catalog import load_catalog
from cdi.ingestion.parsers import find_table, load_table, parse_table
from cdi.ingestion.parsers.docx_loader import (
    DocumentError,
    heading_level,
    parse_docx,
    render_html,
    split_sections,
)
from cdi.normalization.columns import (
    column_measurements,
    country_rows,
    is_flagged_missing,
    missing_column_for,
    parse_score,
    prefixed_columns,
    score_columns,
    table_year,
)


def test_csv_quoted_fields_short_rows_and_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "components.csv"
    path.write_text(
        "\ufeffCountry,ISO,Raw: CDI\n"
        '"Korea, Republic of",KOR,"1,234.5"\n'
        "\n"
        ",,\n"
        "Chile,CHL\n",
        encoding="utf-8",
    )
    table = parse_table(path)

    assert table.columns == ["Country", "ISO", "Raw: CDI"]
    assert table.row_count == 2
    assert table.records[0]["Country"] == "Korea, Republic of"
    assert parse_score(table.records[0]["Raw: CDI"]) == pytest.approx(1234.5)
    assert table.records[1]["Raw: CDI"] is None


def test_xlsx_tables_read_like_csv(tmp_path: Path) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Country", "ISO", "GNI per capita"])
    sheet.append(["Sweden", "SWE", 55000.0])
    sheet.append([None, None, None])
    sheet.append(["Japan", "JPN", 41250.5])
    path = tmp_path / "income.xlsx"
    workbook.save(path)

    assert find_table(tmp_path, "income") == path
    table = load_table(tmp_path, "income")
    assert table.row_count == 2
    assert table.records[0]["GNI per capita"] == "55000"
    assert table.records[1]["GNI per capita"] == "41250.5"


def test_load_table_requires_a_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_table(tmp_path, "indicators")
    with pytest.raises(ValueError):
        parse_table(tmp_path / "indicators.json")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12.5", 12.5),
        ("45%", 45.0),
        ("0", 0.0),
        ("1,234,567", 1234567.0),
        ("-1,000.25", -1000.25),
        ("N/A", None),
        ("", None),
        (None, None),
        ("abc", None),
    ],
)
def test_parse_score(raw, expected) -> None:
    assert parse_score(raw) == expected


def test_decimal_comma_is_not_read_as_thousands(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert parse_score("12,5") is None
        assert parse_score("1,23,456") is None
    assert "12,5" in caplog.text


def test_load_table_logs_row_count(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    (tmp_path / "subcomponents.csv").write_text("Country,ISO,Tariffs\nSweden,SWE,7\nJapan,JPN,8\n", encoding="utf-8")
    with caplog.at_level(logging.INFO):
        load_table(tmp_path, "subcomponents")
    assert "Loaded subcomponents.csv: 2 row(s), 3 column(s)" in caplog.text


def test_missing_flag_column_lookup() -> None:
    columns = ["Country", "ISO", "Aid Volume", "Aid Volume missing data", "Tariffs", "missing data"]

    assert missing_column_for(columns, "Aid Volume") == "Aid Volume missing data"
    assert missing_column_for(columns, "Tariffs") == "missing data"
    assert missing_column_for(columns, "Country") is None
    assert score_columns(columns) == ["Aid Volume", "Tariffs"]
    assert is_flagged_missing("1")
    assert not is_flagged_missing("0")
    assert not is_flagged_missing(None)


def test_country_rows_drop_excluded_blank_and_duplicate(catalog_path: Path, tmp_path: Path, write_csv) -> None:
    path = write_csv(
        tmp_path / "indicators.csv",
        ["Country", "ISO", "year", "Refugees Hosted", "Refugees Hosted missing data"],
        [
            ["Sweden", "swe", "2024", "5", "0"],
            ["Israel", "ISR", "2024", "9", "0"],
            ["Nowhere", "", "2024", "1", "0"],
            ["Sweden again", "SWE", "2024", "7", "0"],
            ["Japan", "JPN", "2024", "3", "1"],
        ],
    )
    table = parse_table(path)
    rows = country_rows(table, load_catalog(catalog_path))

    assert [row.iso for row in rows] == ["SWE", "JPN"]
    assert rows[0].name == "Sweden"
    assert table_year(table) == 2024
    values = column_measurements(rows, "Refugees Hosted", "Refugees Hosted missing data")
    assert values == {"SWE": 5.0, "JPN": None}
    assert prefixed_columns(["Raw: CDI", "Raw: Trade", "ISO"], "Raw:") == {"CDI": "Raw: CDI", "Trade": "Raw: Trade"}


def test_heading_levels() -> None:
    assert heading_level("Heading 1") == 1
    assert heading_level("heading 3") == 3
    assert heading_level("Title") == 1
    assert heading_level("Normal") is None
    assert heading_level(None) is None


def test_parse_docx_splits_sections_and_renders_html(tmp_path: Path) -> None:
    document = Document()
    document.add_paragraph("Preamble before any heading")
    document.add_heading("Trade", level=1)
    paragraph = document.add_paragraph("Tariffs are ")
    paragraph.add_run("low").bold = True
    document.add_paragraph("First point", style="List Bullet")
    document.add_paragraph("Second point", style="List Bullet")
    document.add_heading("Detail", level=4)
    document.add_heading("Migration", level=1)
    document.add_paragraph("Open <borders> & more")
    path = tmp_path / "sample.docx"
    document.save(path)

    parsed = parse_docx(path)
    sections = split_sections(parsed.blocks, (1, 2))

    assert [section.title for section in sections] == ["Trade", "Migration"]
    assert sections[0].html == (
        "<p>Tariffs are <strong>low</strong></p>"
        "<ul><li>First point</li><li>Second point</li></ul>"
        "<h4>Detail</h4>"
    )
    assert sections[1].html == "<p>Open &lt;borders&gt; &amp; more</p>"
    assert [block.text for block in parsed.headings()] == ["Trade", "Migration"]
    assert render_html([]) == ""


def test_parse_docx_rejects_unreadable_files(tmp_path: Path) -> None:
    path = tmp_path / "broken.docx"
    path.write_text("not a zip archive", encoding="utf-8")
    with pytest.raises(DocumentError):
        parse_docx(path)

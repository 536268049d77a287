import base64
import json

import pytest

from app.core.ingestion import (
    DocumentKind,
    default_text,
    detect_kind,
    extract,
    extract_all,
    image_data_uri,
    mine_structured_data,
    printable_runs,
)
from app.schemas.ingestion import UploadedDocument

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


def _doc(name: str, data: bytes, mime: str = "") -> UploadedDocument:
    return UploadedDocument(name=name, mime_type=mime, raw_bytes=data)


@pytest.mark.parametrize(
    ("name", "mime", "kind"),
    [
        ("kb.json", "", DocumentKind.json),
        ("x.bin", "application/json", DocumentKind.json),
        ("report.pdf", "", DocumentKind.pdf),
        ("data.xlsx", "", DocumentKind.spreadsheet),
        ("data.csv", "text/csv", DocumentKind.spreadsheet),
        ("sheet", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", DocumentKind.spreadsheet),
        ("memo.docx", "", DocumentKind.word),
        ("notes.txt", "text/plain", DocumentKind.fallback),
        ("photo.PNG", "", DocumentKind.image),
        ("upload", "image/jpeg", DocumentKind.image),
    ],
)
def test_detect_kind(name, mime, kind):
    assert detect_kind(name, mime) == kind


def test_knowledge_base_json_is_flattened():
    payload = {"slides": [{"title": "A", "content": [{"type": "text", "text": "hello"}]}]}
    result = extract(_doc("kb.json", json.dumps(payload).encode(), "application/json"))

    assert "SLIDE 1: A" in result.text
    assert "- hello" in result.text
    assert result.structured_data is None


def test_knowledge_base_tables_are_flattened():
    payload = {"slides": [{
        "title": "Numbers",
        "content": [{"type": "table", "headers": ["Year", "Revenue"], "rows": [["2023", "10"]]}],
    }]}
    result = extract(_doc("kb.json", json.dumps(payload).encode()))

    assert "Table: Year | Revenue" in result.text
    assert "2023 | 10" in result.text


def test_plain_json_is_pretty_printed_and_mined():
    payload = {
        "quarterly": [10, 12, 15],
        "regions": {"north": 4, "south": 6},
        "sites": [{"name": "A", "output": 3}, {"name": "B", "capacity": 9}],
        "headcount": 120,
    }
    result = extract(_doc("data.json", json.dumps(payload).encode()))

    assert result.text == json.dumps(payload, indent=2)
    data = result.structured_data
    assert data is not None

    labels = [[p.label for p in chart.data] for chart in data.charts]
    assert ["Item 1", "Item 2", "Item 3"] in labels
    assert ["north", "south"] in labels

    assert data.tables[0].headers == ["name", "output", "capacity"]
    assert data.tables[0].rows == [["A", "3", ""], ["B", "", "9"]]
    assert any(m.label == "headcount" and m.value == "120" for m in data.metrics)


def test_mined_charts_and_tables_are_capped():
    payload = {f"series_{i}": [1, 2, 3] for i in range(15)}
    data = mine_structured_data(payload)
    assert len(data.charts) == 10


def test_invalid_json_uses_text_heuristic():
    result = extract(_doc("broken.json", b"{not json at all, but some words here"))

    assert "not json at all" in result.text
    assert result.structured_data is None


def test_printable_runs_respects_minimum_length():
    raw = b"ab\x00\x01Quarterly revenue grew\x00\x02xy"
    assert printable_runs(raw, 10) == "Quarterly revenue grew"


@pytest.mark.parametrize(
    "data",
    [b"", b"\xff\xfe\xfd\x00\x81", bytes(range(256)), b"\x00" * 1024],
)
@pytest.mark.parametrize("name", ["a.pdf", "a.xlsx", "a.docx", "a.json", "a.bin"])
def test_extract_never_raises(name, data):
    result = extract(_doc(name, data))

    assert isinstance(result.text, str)
    assert result.text
    assert result.structured_data is None or result.structured_data.charts is not None


def test_empty_pdf_gets_default_text():
    result = extract(_doc("empty.pdf", b"", "application/pdf"))
    assert result.text == default_text("empty.pdf", DocumentKind.pdf)
    assert result.text == "PDF document: empty.pdf - no readable text could be extracted"


def test_csv_produces_table_without_numeric_chart():
    raw = b"Quarter,Revenue,Notes\nQ1,100,steady\nQ2,120,up\nQ3,,\n"
    result = extract(_doc("rev.csv", raw, "text/csv"))

    table = result.structured_data.tables[0]
    assert table.headers == ["Quarter", "Revenue", "Notes"]
    assert all(len(row) == 3 for row in table.rows)
    assert [row[0] for row in table.rows] == ["Q1", "Q2", "Q3"]
    assert result.structured_data.charts == []


def test_csv_numeric_column_becomes_chart():
    raw = b"Quarter,Revenue\nQ1,100\nQ2,\"1,200\"\n"
    chart = extract(_doc("rev.csv", raw)).structured_data.charts[0]

    assert chart.title == "Revenue by Quarter"
    assert [(p.label, p.value) for p in chart.data] == [("Q1", 100.0), ("Q2", 1200.0)]


async def test_extract_all_preserves_order():
    files = [_doc(f"doc_{i}.txt", f"document number {i} body text".encode()) for i in range(5)]
    results = await extract_all(files)

    assert [r.name for r in results] == [f.name for f in files]
    assert "document number 3" in results[3].text


async def test_extract_all_empty():
    assert await extract_all([]) == []


def test_image_upload_becomes_structured_image():
    result = extract(_doc("site-photo.png", PNG_1X1, "image/png"))

    assert result.text == "Image: site-photo.png"
    image = result.structured_data.images[0]
    assert image.title == "site-photo"
    assert image.url.startswith("data:image/png;base64,")
    assert image.url == image_data_uri(PNG_1X1, "site-photo.png", "image/png")


def test_image_mime_is_guessed_from_extension():
    assert image_data_uri(b"abc", "chart.jpg").startswith("data:image/jpeg;base64,")


def test_oversized_image_keeps_placeholder(monkeypatch):
    monkeypatch.setattr("app.core.ingestion.MAX_INLINE_IMAGE_BYTES", 10)

    image = extract(_doc("big.png", PNG_1X1, "image/png")).structured_data.images[0]

    assert image.url == ""
    assert "too large" in image.description

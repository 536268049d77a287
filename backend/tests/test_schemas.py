import pytest
from pydantic import ValidationError

from app.schemas.presentation import (
    AnnexureSlide,
    Chart,
    ContentSlide,
    Metric,
    Presentation,
    Table,
    ThankYouSlide,
    TitleSlide,
    TocSlide,
)


def _title():
    return TitleSlide(title="Deck", date="January 01, 2026")


def test_short_rows_are_padded_and_long_rows_truncated():
    table = Table(headers=["X", "Y"], rows=[["only-one"], ["a", "b", "c"]])
    assert table.rows == [["only-one", ""], ["a", "b"]]


def test_empty_rows_are_dropped_and_cells_stringified():
    table = Table.model_validate({"headers": ["Year", "Value"], "rows": [[2024, 1.0], ["", " "], [None, 2.5]]})
    assert table.rows == [["2024", "1"], ["", "2.5"]]


def test_missing_headers_are_synthesized():
    table = Table(headers=[], rows=[["a", "b", "c"]])
    assert table.headers == ["Column 1", "Column 2", "Column 3"]


def test_unknown_chart_type_becomes_bar():
    assert Chart(type="Scatter", title="t").type == "bar"
    assert Chart(type="LINE", title="t").type == "line"


def test_metric_numbers_become_text():
    metric = Metric.model_validate({"label": "Output", "value": 12.0, "change": 3.5, "target": 20})
    assert (metric.value, metric.change, metric.target) == ("12", "3.5", "20")


def test_slides_dump_camel_case():
    slide = ContentSlide(title="A", content=["x"], key_insights=["insight"])
    data = slide.model_dump(by_alias=True)

    assert data["keyInsights"] == ["insight"]
    assert data["type"] == "content"


def test_presentation_parses_tagged_slides_from_wire():
    deck = Presentation.model_validate({
        "title": "Deck",
        "date": "today",
        "slides": [
            {"type": "title", "title": "Deck", "date": "today"},
            {"type": "table-of-contents", "items": ["1. A"]},
            {"type": "content", "title": "A", "content": ["x"], "keyInsights": ["y"]},
            {"type": "thank-you"},
            {"type": "annexure", "title": "Annexure A"},
        ],
    })

    assert [type(s) for s in deck.slides] == [TitleSlide, TocSlide, ContentSlide, ThankYouSlide, AnnexureSlide]
    assert deck.slides[1].title == "Table of Content"
    assert deck.slides[2].key_insights == ["y"]
    assert deck.slides[3].title == "THANK YOU"


@pytest.mark.parametrize(
    "slides",
    [
        [],
        [ThankYouSlide()],
        [_title(), ContentSlide(title="A", content=["x"]), TocSlide(items=["A"]), ThankYouSlide()],
        [_title(), ContentSlide(title="A", content=["x"])],
        [_title(), ThankYouSlide(), ThankYouSlide()],
        [_title(), ThankYouSlide(), ContentSlide(title="A", content=["x"])],
    ],
)
def test_invalid_deck_structure_is_rejected(slides):
    with pytest.raises(ValidationError):
        Presentation(title="Deck", date="today", slides=slides)

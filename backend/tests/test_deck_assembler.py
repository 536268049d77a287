from pydantic_ai.models.test import TestModel

from app.core import ai_generators
from app.core.deck_assembler import (
    ANNEXURE_SLIDE_COUNT,
    assemble_deck,
    default_annexure,
    generate_annexure,
    merge_structured,
)
from app.schemas.ingestion import ExtractedDocument
from app.schemas.presentation import Chart, ContentSlide, Image, StructuredData, Table, TocItem


def _content(title: str) -> ContentSlide:
    return ContentSlide(title=title, content=[f"{title} bullet"])


def test_slides_are_ordered():
    toc = [TocItem(label="1. Intro", title="Intro"), TocItem(label="2. Numbers", title="Numbers")]
    deck = assemble_deck(
        "Deck", "January 01, 2026", toc, [_content("Intro"), _content("Numbers")], default_annexure("Deck"),
    )

    assert [s.type for s in deck.slides] == [
        "title", "table-of-contents", "content", "content", "thank-you", "annexure", "annexure", "annexure",
    ]
    assert deck.slides[0].title == "Deck"
    assert deck.slides[0].date == "January 01, 2026"
    assert deck.slides[1].items == ["1. Intro", "2. Numbers"]


def test_empty_toc_has_no_toc_slide():
    deck = assemble_deck("Deck", "today", [], [_content("Only")])
    assert [s.type for s in deck.slides] == ["title", "content", "thank-you"]


def test_merge_structured_keeps_document_order():
    docs = [
        ExtractedDocument(name="a", text="a", structured_data=StructuredData(
            charts=[Chart(title="c1")], tables=[Table(title="t1", headers=["h"])],
        )),
        ExtractedDocument(name="b", text="b"),
        ExtractedDocument(name="c", text="c", structured_data=StructuredData(
            charts=[Chart(title="c2")], images=[Image(url="data:image/png;base64,AAAA", title="i1")],
        )),
    ]
    merged = merge_structured(docs)

    assert [c.title for c in merged.charts] == ["c1", "c2"]
    assert [t.title for t in merged.tables] == ["t1"]
    assert [i.title for i in merged.images] == ["i1"]


def test_default_annexure_shape():
    slides = default_annexure("Deck")

    assert len(slides) == ANNEXURE_SLIDE_COUNT
    assert slides[0].title == "Annexure A: Detailed Financial Breakdown"
    assert len(slides[0].tables[0].rows) >= 5
    assert slides[1].charts[0].type == "bar"
    assert slides[2].charts[0].type == "line"


async def test_annexure_falls_back_when_llm_fails(failing_llm):
    slides = await generate_annexure("Deck", [_content("Intro")])
    assert [s.title for s in slides] == [s.title for s in default_annexure("Deck")]


async def test_short_annexure_draft_falls_back():
    short = TestModel(custom_output_args={"slides": [{"title": "Only one"}]})
    with ai_generators.annexure_agent.override(model=short):
        slides = await generate_annexure("Deck", [_content("Intro")])

    assert len(slides) == ANNEXURE_SLIDE_COUNT
    assert slides[0].title.startswith("Annexure A")


async def test_annexure_draft_is_trimmed_to_three():
    drafts = {"slides": [{"title": f"Extra {i}", "content": ["x"]} for i in range(5)]}
    with ai_generators.annexure_agent.override(model=TestModel(custom_output_args=drafts)):
        slides = await generate_annexure("Deck", [_content("Intro")])

    assert [s.title for s in slides] == ["Extra 0", "Extra 1", "Extra 2"]
    assert all(s.type == "annexure" for s in slides)

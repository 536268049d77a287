import base64
import io
import time

import pytest
from pptx import Presentation as PptxPresentation
from pptx.enum.shapes import MSO_SHAPE_TYPE

from app.core import pptx_export
from app.core.deck_assembler import assemble_deck, default_annexure, merge_structured
from app.core.deck_template import render_presentation_html
from app.core.exceptions import ExportError
from app.core.ingestion import extract_all
from app.core.pptx_export import build_pptx, render_pptx
from app.core.slide_templates import SlideTemplate, get_profile
from app.core.slide_generator import DeckMeta, SlideContentGenerator
from app.core.throttle import FixedIntervalThrottle
from app.schemas.ingestion import UploadedDocument
from app.schemas.presentation import ContentSlide, Image, TocItem

PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


@pytest.fixture
def deck():
    toc = [TocItem(label="1. Revenue", title="Revenue"), TocItem(label="2. Safety", title="Safety")]
    slides = [
        get_profile(SlideTemplate.FINANCIAL_ANALYSIS).fallback_slide("Revenue", 0),
        get_profile(SlideTemplate.RISK_MANAGEMENT).fallback_slide("Safety", 1),
    ]
    return assemble_deck("Annual <Review>", "January 01, 2026", toc, slides, default_annexure("Annual Review"))


def test_pptx_has_one_slide_per_deck_slide(deck):
    data = build_pptx(deck)
    prs = PptxPresentation(io.BytesIO(data))

    assert len(prs.slides) == len(deck.slides)

    content = prs.slides[2]
    assert any(shape.has_table for shape in content.shapes)
    assert any(shape.has_chart for shape in content.shapes)
    assert "Key insights" in content.notes_slide.notes_text_frame.text


def test_pie_chart_exports():
    slide = get_profile(SlideTemplate.MARKET_ANALYSIS).fallback_slide("Market", 0)
    deck = assemble_deck("Deck", "today", [], [slide])

    prs = PptxPresentation(io.BytesIO(build_pptx(deck)))
    assert len(prs.slides) == 3


async def test_render_pptx_returns_bytes(deck):
    data = await render_pptx(deck)
    assert data.startswith(b"PK")


async def test_render_pptx_times_out(deck, monkeypatch):
    def slow_build(presentation):
        time.sleep(0.5)
        return b"late"

    monkeypatch.setattr(pptx_export, "build_pptx", slow_build)

    with pytest.raises(ExportError) as exc_info:
        await render_pptx(deck, timeout=0.05)

    assert exc_info.value.error == "PowerPoint generation timeout"
    assert exc_info.value.status_code == 500


async def test_render_pptx_wraps_serializer_errors(deck, monkeypatch):
    def broken_build(presentation):
        raise RuntimeError("disk full")

    monkeypatch.setattr(pptx_export, "build_pptx", broken_build)

    with pytest.raises(ExportError) as exc_info:
        await render_pptx(deck)

    assert exc_info.value.error == "Failed to generate PowerPoint"
    assert exc_info.value.details == "disk full"


def test_html_escapes_and_renders_every_slide(deck):
    html = render_presentation_html(deck)

    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Annual &lt;Review&gt;</title>" in html
    assert "<Review>" not in html
    assert html.count("<section") == len(deck.slides)
    assert "Annexure A: Detailed Financial Breakdown" in html
    assert 'class="data-table"' in html


def _shapes_of(deck, slide_number):
    prs = PptxPresentation(io.BytesIO(build_pptx(deck)))
    return list(prs.slides[slide_number].shapes)


def test_inline_image_becomes_picture():
    url = "data:image/png;base64," + base64.b64encode(PNG_1X1).decode()
    slide = ContentSlide(title="Site", content=["Plant overview"], images=[Image(url=url, title="Plant")])

    shapes = _shapes_of(assemble_deck("Deck", "today", [], [slide]), 1)

    pictures = [s for s in shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]
    assert len(pictures) == 1
    assert pictures[0].width <= pptx_export.Inches(12.3)


@pytest.mark.parametrize(
    "url",
    ["", "https://example.com/plant.png", "data:image/png;base64,not-base64!", "data:image/png;base64,AAAA"],
)
def test_unusable_image_becomes_captioned_placeholder(url):
    slide = ContentSlide(title="Site", content=["Plant overview"], images=[Image(url=url, title="Plant")])

    shapes = _shapes_of(assemble_deck("Deck", "today", [], [slide]), 1)

    assert not any(s.shape_type == MSO_SHAPE_TYPE.PICTURE for s in shapes)
    assert any(s.has_text_frame and s.text_frame.text == "[Image] Plant" for s in shapes)


async def test_uploaded_image_reaches_the_first_content_slide(failing_llm):
    docs = await extract_all([UploadedDocument(name="plant.png", mime_type="image/png", raw_bytes=PNG_1X1)])
    toc = [TocItem(label="1. Revenue", title="Revenue")]
    slides = await SlideContentGenerator(throttle=FixedIntervalThrottle(0)).generate_all(
        toc, "", DeckMeta(title="Deck"), merge_structured(docs)
    )
    deck = assemble_deck("Deck", "today", toc, slides)

    # title, toc, content
    shapes = _shapes_of(deck, 2)
    assert any(s.shape_type == MSO_SHAPE_TYPE.PICTURE for s in shapes)
    assert any(s.has_table for s in shapes)

    html = render_presentation_html(deck)
    assert '<img src="data:image/png;base64,' in html
    assert "<figcaption>plant</figcaption>" in html


def test_html_image_without_inline_data_is_placeholder():
    slide = ContentSlide(title="Site", images=[Image(url="https://example.com/x.png", title="Remote")])

    html = render_presentation_html(assemble_deck("Deck", "today", [], [slide]))

    assert "<img" not in html
    assert "[Image] Remote" in html

"""
PowerPoint export.

``build_pptx`` is a pure, blocking function from ``Presentation`` to .pptx
bytes built on python-pptx.  ``render_pptx`` runs it in a worker thread under
a deadline so a stuck serialization fails the request instead of hanging it.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging

from pptx import Presentation as PptxPresentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt

from app.core.config import settings
from app.core.exceptions import ExportError
from app.schemas.presentation import (
    AnnexureSlide,
    Chart,
    ContentSlide,
    Image,
    Presentation,
    Table,
    ThankYouSlide,
    TitleSlide,
    TocSlide,
)

logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

SLIDE_WIDTH = Inches(13.333)
SLIDE_HEIGHT = Inches(7.5)
BLANK_LAYOUT = 6

PRIMARY = RGBColor(0x1E, 0x3A, 0x8A)
TEXT = RGBColor(0x1F, 0x29, 0x37)
MUTED = RGBColor(0x6B, 0x72, 0x80)
WHITE = RGBColor(0xFF, 0xFF, 0xFF)
PLACEHOLDER = RGBColor(0xF0, 0xF1, 0xF5)

_CHART_TYPES = {
    "bar": XL_CHART_TYPE.COLUMN_CLUSTERED,
    "line": XL_CHART_TYPE.LINE_MARKERS,
    "pie": XL_CHART_TYPE.PIE,
}

MAX_BULLETS_PER_SLIDE = 10
MAX_TABLE_ROWS = 8


# ── Low-level helpers ────────────────────────────────────────────────

def _fill_background(slide, color: RGBColor) -> None:
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = color


def _add_text(slide, text: str, left, top, width, height, *, size: int = 18,
              bold: bool = False, color: RGBColor = TEXT, align=PP_ALIGN.LEFT):
    box = slide.shapes.add_textbox(left, top, width, height)
    frame = box.text_frame
    frame.word_wrap = True
    para = frame.paragraphs[0]
    para.text = text
    para.alignment = align
    para.font.size = Pt(size)
    para.font.bold = bold
    para.font.color.rgb = color
    return box


def _add_bullets(slide, items: list[str], left, top, width, height, size: int = 14) -> None:
    if not items:
        return
    frame = slide.shapes.add_textbox(left, top, width, height).text_frame
    frame.word_wrap = True
    for i, item in enumerate(items[:MAX_BULLETS_PER_SLIDE]):
        para = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
        para.text = f"• {item}"
        para.font.size = Pt(size)
        para.font.color.rgb = TEXT
        para.space_after = Pt(4)


def _add_heading(slide, title: str) -> None:
    _add_text(slide, title, Inches(0.5), Inches(0.3), Inches(12.3), Inches(0.9), size=30, bold=True, color=PRIMARY)


def _add_table(slide, table: Table, left, top, width, height) -> None:
    if not table.headers:
        return
    rows = table.rows[:MAX_TABLE_ROWS]
    shape = slide.shapes.add_table(len(rows) + 1, len(table.headers), left, top, width, height)
    grid = shape.table
    for col, header in enumerate(table.headers):
        cell = grid.cell(0, col)
        cell.text = header
        cell.text_frame.paragraphs[0].font.size = Pt(11)
        cell.text_frame.paragraphs[0].font.bold = True
    for r, row in enumerate(rows, start=1):
        for col, value in enumerate(row):
            cell = grid.cell(r, col)
            cell.text = value
            cell.text_frame.paragraphs[0].font.size = Pt(10)


def _add_chart(slide, chart: Chart, left, top, width, height) -> None:
    if not chart.data:
        return
    data = CategoryChartData()
    data.categories = [point.label for point in chart.data]
    data.add_series(chart.title or "Series 1", [point.value for point in chart.data])
    series_count = 1
    if chart.type != "pie" and any(point.target is not None for point in chart.data):
        data.add_series("Target", [point.target for point in chart.data])
        series_count += 1

    graphic = slide.shapes.add_chart(_CHART_TYPES[chart.type], left, top, width, height, data).chart
    graphic.has_title = bool(chart.title)
    if chart.title:
        graphic.chart_title.text_frame.text = chart.title
    graphic.has_legend = chart.type == "pie" or series_count > 1
    if graphic.has_legend:
        graphic.legend.position = XL_LEGEND_POSITION.BOTTOM
        graphic.legend.include_in_layout = False


def image_bytes(url: str) -> bytes | None:
    """Decode a base64 ``data:`` URI; other URLs are never fetched."""
    if not url.startswith("data:") or ";base64," not in url:
        return None
    try:
        return base64.b64decode(url.split(";base64,", 1)[1], validate=True)
    except (binascii.Error, ValueError):
        return None


def _add_image_placeholder(slide, image: Image, left, top, width, height) -> None:
    rect = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, left, top, width, height)
    rect.fill.solid()
    rect.fill.fore_color.rgb = PLACEHOLDER
    rect.line.fill.background()
    frame = rect.text_frame
    frame.word_wrap = True
    para = frame.paragraphs[0]
    para.text = f"[Image] {image.title or image.description}".rstrip()
    para.alignment = PP_ALIGN.CENTER
    para.font.size = Pt(14)
    para.font.color.rgb = MUTED


def _add_image(slide, image: Image, left, top, width, height) -> None:
    """Place the picture scaled to fit the box, or a captioned placeholder."""
    data = image_bytes(image.url)
    if data is None:
        _add_image_placeholder(slide, image, left, top, width, height)
        return
    try:
        picture = slide.shapes.add_picture(io.BytesIO(data), left, top)
    except (OSError, ValueError):
        logger.warning("Unreadable image %r, drawing a placeholder", image.title, exc_info=True)
        _add_image_placeholder(slide, image, left, top, width, height)
        return
    scale = min(width / picture.width, height / picture.height)
    picture.width = int(picture.width * scale)
    picture.height = int(picture.height * scale)
    if image.description:
        picture.name = image.description[:255]


def _add_visuals(slide, tables: list[Table], charts: list[Chart], top, images: list[Image] | None = None) -> None:
    """Lay out the first two of table, image and chart side by side under ``top``.

    An uploaded image takes the chart's place when the slide has all three.
    """
    height = SLIDE_HEIGHT - top - Inches(0.3)
    visuals = []
    if tables:
        visuals.append((_add_table, tables[0]))
    if images:
        visuals.append((_add_image, images[0]))
    if charts:
        visuals.append((_add_chart, charts[0]))

    if len(visuals) == 1:
        render, item = visuals[0]
        render(slide, item, Inches(0.5), top, Inches(12.3), height)
        return
    for (render, item), left, width in zip(visuals, (Inches(0.5), Inches(6.9)), (Inches(6.0), Inches(5.9))):
        render(slide, item, left, top, width, height)


# ── Slide renderers ──────────────────────────────────────────────────

def _render_title(prs, slide_model: TitleSlide) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _fill_background(slide, PRIMARY)
    _add_text(slide, slide_model.title, Inches(0.5), Inches(2.5), Inches(12.3), Inches(1.4),
              size=44, bold=True, color=WHITE, align=PP_ALIGN.CENTER)
    if slide_model.subtitle:
        _add_text(slide, slide_model.subtitle, Inches(0.5), Inches(3.9), Inches(12.3), Inches(0.8),
                  size=22, color=WHITE, align=PP_ALIGN.CENTER)
    _add_text(slide, slide_model.date, Inches(0.5), Inches(5.2), Inches(12.3), Inches(0.6),
              size=16, color=WHITE, align=PP_ALIGN.CENTER)


def _render_toc(prs, slide_model: TocSlide) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _add_heading(slide, slide_model.title)
    half = (len(slide_model.items) + 1) // 2
    columns = [slide_model.items[:half], slide_model.items[half:]]
    for col, items in enumerate(columns):
        if not items:
            continue
        frame = slide.shapes.add_textbox(Inches(0.5 + col * 6.2), Inches(1.4), Inches(6.0), Inches(5.7)).text_frame
        frame.word_wrap = True
        for i, item in enumerate(items):
            para = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
            para.text = item
            para.font.size = Pt(16)
            para.font.color.rgb = TEXT


def _render_content(prs, slide_model: ContentSlide) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _add_heading(slide, slide_model.title)
    top = Inches(1.2)
    if slide_model.subtitle:
        _add_text(slide, slide_model.subtitle, Inches(0.5), top, Inches(12.3), Inches(0.5), size=16, color=MUTED)
        top += Inches(0.5)

    if slide_model.metrics:
        metrics = slide_model.metrics[:4]
        width = Inches(12.3 / len(metrics))
        for i, metric in enumerate(metrics):
            left = Inches(0.5) + width * i
            _add_text(slide, metric.value, left, top, width, Inches(0.5), size=20, bold=True,
                      color=PRIMARY, align=PP_ALIGN.CENTER)
            label = f"{metric.label} ({metric.change})" if metric.change else metric.label
            _add_text(slide, label, left, top + Inches(0.45), width, Inches(0.4), size=11,
                      color=MUTED, align=PP_ALIGN.CENTER)
        top += Inches(1.0)

    has_visuals = bool(slide_model.tables or slide_model.charts or slide_model.images)
    bullet_height = Inches(2.6) if has_visuals else SLIDE_HEIGHT - top - Inches(0.3)
    _add_bullets(slide, slide_model.content, Inches(0.5), top, Inches(12.3), bullet_height,
                 size=12 if has_visuals else 16)
    if has_visuals:
        _add_visuals(slide, slide_model.tables, slide_model.charts, top + bullet_height, slide_model.images)

    if slide_model.key_insights:
        slide.notes_slide.notes_text_frame.text = "Key insights:\n" + "\n".join(slide_model.key_insights)


def _render_thank_you(prs, slide_model: ThankYouSlide) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _fill_background(slide, PRIMARY)
    _add_text(slide, slide_model.title, Inches(0.5), Inches(3.0), Inches(12.3), Inches(1.5),
              size=54, bold=True, color=WHITE, align=PP_ALIGN.CENTER)


def _render_annexure(prs, slide_model: AnnexureSlide) -> None:
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    _add_heading(slide, slide_model.title)
    _add_bullets(slide, slide_model.content, Inches(0.5), Inches(1.2), Inches(12.3), Inches(1.2))
    _add_visuals(slide, slide_model.tables, slide_model.charts, Inches(2.5))


def build_pptx(presentation: Presentation) -> bytes:
    """Serialize ``presentation`` to .pptx bytes, one PowerPoint slide per deck slide."""
    prs = PptxPresentation()
    prs.slide_width = SLIDE_WIDTH
    prs.slide_height = SLIDE_HEIGHT

    for slide in presentation.slides:
        match slide:
            case TitleSlide():
                _render_title(prs, slide)
            case TocSlide():
                _render_toc(prs, slide)
            case ContentSlide():
                _render_content(prs, slide)
            case ThankYouSlide():
                _render_thank_you(prs, slide)
            case AnnexureSlide():
                _render_annexure(prs, slide)
            case _:
                raise TypeError(f"unsupported slide type: {type(slide).__name__}")

    buffer = io.BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


async def render_pptx(presentation: Presentation, timeout: float | None = None) -> bytes:
    """Build the .pptx in a worker thread, failing with ``ExportError`` after
    ``timeout`` seconds or on any serialization error."""
    timeout = settings.EXPORT_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        data = await asyncio.wait_for(asyncio.to_thread(build_pptx, presentation), timeout)
    except asyncio.TimeoutError:
        logger.error("PowerPoint generation exceeded %.1fs", timeout)
        raise ExportError("PowerPoint generation timeout", f"No output after {timeout:g} seconds")
    except Exception as e:
        logger.exception("PowerPoint generation failed")
        raise ExportError("Failed to generate PowerPoint", str(e)) from e

    if not data:
        raise ExportError("Failed to generate PowerPoint", "Serializer produced no output")
    logger.info("Generated PowerPoint: %d slides, %d bytes", len(presentation.slides), len(data))
    return data

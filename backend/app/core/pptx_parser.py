"""
Read uploaded .pptx files into ``ParsedPresentation`` for the slide library.
"""

import io
import logging
import zipfile
from pathlib import PurePath

from pptx import Presentation as PptxPresentation
from pptx.exc import PackageNotFoundError

from app.core.exceptions import InvalidRequestError
from app.schemas.slide_library import LibrarySlideType, ParsedPresentation, ParsedSlide

logger = logging.getLogger(__name__)

TITLE_CONTENT_THRESHOLD = 50


def classify_slide_type(title: str, content: str) -> LibrarySlideType:
    lower_title = title.lower()
    lower_content = content.lower()

    if "thank" in lower_title or "thank you" in lower_content:
        return "thankyou"
    if any(word in lower_title for word in ("table of contents", "agenda", "outline")):
        return "toc"
    if len(content) < TITLE_CONTENT_THRESHOLD:
        return "title"
    return "content"


def _slide_title(slide) -> str | None:
    title_shape = slide.shapes.title
    if title_shape is not None and title_shape.has_text_frame:
        text = title_shape.text_frame.text.strip()
        if text:
            return text
    return None


def _slide_text(slide, title_shape_id: int | None) -> tuple[list[str], list[str]]:
    """Return ``(text_items, bullet_points)`` for every shape except the title."""
    items: list[str] = []
    bullets: list[str] = []
    for shape in slide.shapes:
        if shape.shape_id == title_shape_id:
            continue
        if shape.has_table:
            for row in shape.table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    items.append(" | ".join(cells))
            continue
        if not shape.has_text_frame:
            continue
        paragraphs = [p.text.strip() for p in shape.text_frame.paragraphs if p.text.strip()]
        if not paragraphs:
            continue
        items.append("\n".join(paragraphs))
        if len(paragraphs) > 1:
            bullets.extend(paragraphs)
    return items, bullets


def parse_presentation(filename: str, data: bytes) -> ParsedPresentation:
    """Extract title, body text and bullet points of every slide.

    Raises ``InvalidRequestError`` when ``data`` is not a readable .pptx.
    """
    try:
        prs = PptxPresentation(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning("Could not open %s as PowerPoint: %s", filename, e)
        raise InvalidRequestError("Invalid PowerPoint file", str(e)) from e

    slides = []
    for number, slide in enumerate(prs.slides, start=1):
        title = _slide_title(slide)
        title_id = slide.shapes.title.shape_id if title else None
        items, bullets = _slide_text(slide, title_id)
        if title is None:
            # Promote the first text block when the layout has no title placeholder
            title = items.pop(0).split("\n")[0] if items else f"Slide {number}"
        content = "\n".join(items)
        slides.append(ParsedSlide(
            slide_number=number,
            slide_type=classify_slide_type(title, content),
            title=title,
            content=content,
            bullet_points=bullets,
        ))

    return ParsedPresentation(
        title=PurePath(filename).stem or filename,
        file_name=filename,
        total_slides=len(slides),
        slides=slides,
    )

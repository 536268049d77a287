import re

from fastapi.responses import Response

from app.core.deck_template import render_presentation_html
from app.core.pptx_export import PPTX_MEDIA_TYPE, render_pptx
from app.schemas.presentation import Presentation

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(title: str, extension: str) -> str:
    """``"Q1 Review / 2024"`` -> ``"Q1_Review_2024.pptx"``."""
    stem = _UNSAFE_FILENAME.sub("_", title).strip("._") or "presentation"
    return f"{stem[:100]}.{extension}"


def _attachment(content: bytes | str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def export_powerpoint(presentation: Presentation) -> Response:
    data = await render_pptx(presentation)
    return _attachment(data, PPTX_MEDIA_TYPE, safe_filename(presentation.title, "pptx"))


async def export_html(presentation: Presentation) -> Response:
    document = render_presentation_html(presentation)
    return _attachment(document, "text/html; charset=utf-8", safe_filename(presentation.title, "html"))

from fastapi import APIRouter

from app.controllers import export_controller
from app.schemas.generation import ExportRequest

router = APIRouter(tags=["export"])


@router.post("/export-powerpoint")
async def export_powerpoint(payload: ExportRequest):
    """Download the deck as a .pptx file."""
    return await export_controller.export_powerpoint(payload.presentation)


@router.post("/generate-pptx")
async def generate_pptx(payload: ExportRequest):
    """Alias of ``/export-powerpoint``."""
    return await export_controller.export_powerpoint(payload.presentation)


@router.post("/export-html")
async def export_html(payload: ExportRequest):
    """Download the deck as a self-contained, printable .html file."""
    return await export_controller.export_html(payload.presentation)

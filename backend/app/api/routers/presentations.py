from fastapi import APIRouter, Depends, File, UploadFile
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db
from app.controllers import presentation_controller
from app.schemas.slide_library import (
    PresentationListResponse,
    SimilarSlidesRequest,
    SimilarSlidesResponse,
    UploadResponse,
)

router = APIRouter(prefix="/presentations", tags=["presentations"])


@router.post("/upload", response_model=UploadResponse)
async def upload_presentation(
    file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    """Add a .pptx to the slide library."""
    return await presentation_controller.upload_presentation(file, db)


@router.post("/search-similar", response_model=SimilarSlidesResponse)
async def search_similar(
    payload: SimilarSlidesRequest,
    db: AsyncSession = Depends(get_db),
):
    """Find library slides similar to a free-text query."""
    return await presentation_controller.search_similar(payload, db)


@router.get("/list", response_model=PresentationListResponse)
async def list_presentations(db: AsyncSession = Depends(get_db)):
    return await presentation_controller.list_presentations(db)

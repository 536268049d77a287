from fastapi import UploadFile
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.ai_generators import require_openai_key
from app.core import slide_library
from app.core.exceptions import InvalidRequestError
from app.core.pptx_parser import parse_presentation
from app.schemas.slide_library import (
    PresentationListResponse,
    PresentationSummary,
    SimilarSlidesRequest,
    SimilarSlidesResponse,
    UploadResponse,
)


async def upload_presentation(file: UploadFile | None, db: AsyncSession) -> UploadResponse:
    if file is None or not file.filename:
        raise InvalidRequestError("No file provided")
    if not file.filename.lower().endswith(".pptx"):
        raise InvalidRequestError("Only .pptx files are supported")
    require_openai_key()

    parsed = parse_presentation(file.filename, await file.read())
    if not parsed.slides:
        raise InvalidRequestError("No slides found in presentation")

    stored = await slide_library.store_presentation(db, parsed)
    return UploadResponse(
        presentation=PresentationSummary(id=stored.id, title=stored.title, total_slides=stored.total_slides)
    )


async def search_similar(payload: SimilarSlidesRequest, db: AsyncSession) -> SimilarSlidesResponse:
    if not payload.query.strip():
        raise InvalidRequestError("Query is required")
    require_openai_key()

    slides = await slide_library.search_similar_slides(
        db,
        payload.query,
        match_count=payload.limit,
        slide_type=payload.slide_type,
    )
    return SimilarSlidesResponse(slides=slides)


async def list_presentations(db: AsyncSession) -> PresentationListResponse:
    return PresentationListResponse(presentations=await slide_library.list_presentations(db))

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db, get_generation_request
from app.controllers import generation_controller
from app.schemas.generation import GenerateRequest, GenerateResponse, GenerationRequest
from app.schemas.presentation import Presentation

router = APIRouter(tags=["generation"])


@router.post("/generate-presentation", response_model=Presentation)
async def generate_presentation(
    payload: GenerationRequest = Depends(get_generation_request),
    db: AsyncSession = Depends(get_db),
):
    """Generate a full deck from title, summary, optional TOC and uploaded documents."""
    return await generation_controller.generate_presentation(payload, db)


@router.post("/generate", response_model=GenerateResponse)
async def generate(
    payload: GenerateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Outline a deck from a single topic."""
    presentation = await generation_controller.generate_quick_deck(payload, db)
    return GenerateResponse(presentation=presentation)

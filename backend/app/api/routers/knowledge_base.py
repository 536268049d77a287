from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db
from app.controllers import knowledge_base_controller
from app.schemas.knowledge_base import IngestRequest, IngestResponse, SearchRequest, SearchResponse

router = APIRouter(prefix="/knowledge-base", tags=["knowledge-base"])


@router.post("/ingest", response_model=IngestResponse)
async def ingest(
    payload: IngestRequest,
    db: AsyncSession = Depends(get_db),
):
    """Chunk, embed and store a reference document."""
    return await knowledge_base_controller.ingest(payload, db)


@router.post("/search", response_model=SearchResponse)
async def search(
    payload: SearchRequest,
    db: AsyncSession = Depends(get_db),
):
    return await knowledge_base_controller.search(payload, db)

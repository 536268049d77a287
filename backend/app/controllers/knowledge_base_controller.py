from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.ai_generators import require_openai_key
from app.core import knowledge_base
from app.core.exceptions import InvalidRequestError
from app.schemas.knowledge_base import IngestRequest, IngestResponse, SearchRequest, SearchResponse


async def ingest(payload: IngestRequest, db: AsyncSession) -> IngestResponse:
    if not payload.title.strip() or not payload.content.strip():
        raise InvalidRequestError("Title and content are required")
    require_openai_key()

    document_id, processed = await knowledge_base.ingest_document(
        db,
        title=payload.title,
        content=payload.content,
        document_type=payload.document_type or "document",
        source=payload.source or "manual_upload",
        metadata=payload.metadata,
    )
    return IngestResponse(
        document_id=document_id,
        chunks_processed=processed,
        message=f'Successfully ingested {processed} chunks from "{payload.title}"',
    )


async def search(payload: SearchRequest, db: AsyncSession) -> SearchResponse:
    if not payload.query.strip():
        raise InvalidRequestError("Query is required")
    require_openai_key()

    results = await knowledge_base.search_knowledge_base(
        db, payload.query, payload.match_threshold, payload.match_count
    )
    return SearchResponse(results=results, count=len(results))

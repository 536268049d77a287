"""
Slide library: uploaded presentations whose slides are embedded so new decks
can borrow style and content from similar existing slides.
"""

import logging

from sqlalchemy import text
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.embeddings import generate_embedding, generate_embeddings
from app.core.exceptions import InvalidRequestError
from app.models.presentation import StoredPresentation, StoredSlide
from app.models.vector import format_vector
from app.schemas.slide_library import (
    ParsedPresentation,
    PresentationListItem,
    SimilarSlide,
)

logger = logging.getLogger(__name__)

_MATCH_SLIDES_SQL = text(
    "SELECT * FROM match_slides("
    "CAST(:query_embedding AS vector), :match_threshold, :match_count)"
)
_MATCH_SLIDES_BY_TYPE_SQL = text(
    "SELECT * FROM match_slides("
    "CAST(:query_embedding AS vector), :match_threshold, :match_count) "
    "WHERE slide_type = :slide_type"
)


async def store_presentation(db: AsyncSession, parsed: ParsedPresentation) -> StoredPresentation:
    """Embed every slide of ``parsed`` and store it with its presentation row."""
    if not parsed.slides:
        raise InvalidRequestError("No slides found in presentation")

    embeddings = await generate_embeddings([slide.embedding_text() for slide in parsed.slides])

    presentation = StoredPresentation(
        title=parsed.title,
        file_name=parsed.file_name,
        total_slides=parsed.total_slides,
    )
    db.add(presentation)
    await db.flush()

    for slide, embedding in zip(parsed.slides, embeddings):
        db.add(StoredSlide(
            presentation_id=presentation.id,
            slide_number=slide.slide_number,
            slide_type=slide.slide_type,
            title=slide.title,
            content=slide.content,
            bullet_points=slide.bullet_points,
            embedding=embedding,
        ))
    await db.flush()

    logger.info("Stored presentation %s (%s): %d slides", presentation.id, parsed.file_name, len(parsed.slides))
    return presentation


async def search_similar_slides(
    db: AsyncSession,
    query: str,
    match_threshold: float = 0.7,
    match_count: int = 5,
    slide_type: str | None = None,
) -> list[SimilarSlide]:
    embedding = await generate_embedding(query)
    params = {
        "query_embedding": format_vector(embedding),
        "match_threshold": match_threshold,
        "match_count": match_count,
    }
    if slide_type:
        result = await db.execute(_MATCH_SLIDES_BY_TYPE_SQL, {**params, "slide_type": slide_type})
    else:
        result = await db.execute(_MATCH_SLIDES_SQL, params)
    return [SimilarSlide.model_validate(dict(row)) for row in result.mappings().all()]


async def list_presentations(db: AsyncSession, limit: int = 50) -> list[PresentationListItem]:
    statement = (
        select(StoredPresentation)
        .order_by(StoredPresentation.created_at.desc())
        .limit(limit)
    )
    rows = (await db.exec(statement)).all()
    return [
        PresentationListItem(
            id=row.id,
            title=row.title,
            file_name=row.file_name,
            total_slides=row.total_slides,
            created_at=row.created_at,
        )
        for row in rows
    ]

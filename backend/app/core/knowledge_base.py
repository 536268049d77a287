"""
Knowledge base: chunking, embedding and similarity search over reference
documents stored in ``knowledge_base_documents`` / ``knowledge_base_chunks``.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.embeddings import generate_embedding, generate_embeddings
from app.models.knowledge_base import KnowledgeBaseChunk, KnowledgeBaseDocument
from app.models.vector import format_vector
from app.schemas.knowledge_base import KnowledgeChunk, KnowledgeSearchResult

logger = logging.getLogger(__name__)

MAX_CHUNK_LENGTH = 1000
MIN_SECTION_LENGTH = 50
EMBEDDING_BATCH_SIZE = 10

_SLIDE_PATTERN = re.compile(r"SLIDE\s+(\d+)[:\s—-]+(.+?)(?=SLIDE\s+\d+|$)", re.IGNORECASE | re.DOTALL)
_SECTION_SPLIT = re.compile(r"\n\n+")
_LINE_SPLIT = re.compile(r"\n+")

_SEARCH_SQL = text(
    "SELECT * FROM search_knowledge_base("
    "CAST(:query_embedding AS vector), :match_threshold, :match_count)"
)


def split_large_content(content: str, max_length: int = MAX_CHUNK_LENGTH) -> list[str]:
    """Pack lines of ``content`` into chunks of at most ``max_length`` chars.

    A single line longer than ``max_length`` becomes its own chunk.
    """
    if len(content) <= max_length:
        return [content]

    chunks: list[str] = []
    current = ""
    for paragraph in _LINE_SPLIT.split(content):
        if current and len(current) + len(paragraph) > max_length:
            chunks.append(current.strip())
            current = paragraph
        else:
            current = f"{current}\n{paragraph}" if current else paragraph
    if current.strip():
        chunks.append(current.strip())
    return chunks


def parse_knowledge_content(content: str, document_type: str) -> list[KnowledgeChunk]:
    """Chunk a document for embedding.

    Presentations are split on ``SLIDE n:`` markers; anything else is split
    on blank lines, dropping sections of 50 characters or fewer.
    """
    chunks: list[KnowledgeChunk] = []

    if document_type == "presentation":
        for match in _SLIDE_PATTERN.finditer(content):
            slide_number = int(match.group(1))
            for index, piece in enumerate(split_large_content(match.group(2).strip())):
                chunks.append(KnowledgeChunk(
                    content=piece,
                    metadata={"slideNumber": slide_number, "chunkIndex": index, "type": "slide"},
                ))
        return chunks

    for section_index, section in enumerate(_SECTION_SPLIT.split(content)):
        if len(section.strip()) <= MIN_SECTION_LENGTH:
            continue
        for index, piece in enumerate(split_large_content(section)):
            chunks.append(KnowledgeChunk(
                content=piece,
                metadata={"sectionIndex": section_index, "chunkIndex": index, "type": "section"},
            ))
    return chunks


async def ingest_document(
    db: AsyncSession,
    title: str,
    content: str,
    document_type: str = "document",
    source: str = "manual_upload",
    metadata: dict[str, Any] | None = None,
) -> tuple[UUID, int]:
    """Store a document and its embedded chunks.

    Returns ``(document_id, chunks_processed)``.  Embedding or database
    failures propagate; the request-scoped session rolls the insert back.
    """
    document = KnowledgeBaseDocument(
        title=title,
        document_type=document_type,
        source=source,
        doc_metadata=metadata or {},
    )
    db.add(document)
    await db.flush()

    chunks = parse_knowledge_content(content, document_type)
    processed = 0
    for start in range(0, len(chunks), EMBEDDING_BATCH_SIZE):
        batch = chunks[start:start + EMBEDDING_BATCH_SIZE]
        embeddings = await generate_embeddings([chunk.content for chunk in batch])
        for offset, (chunk, embedding) in enumerate(zip(batch, embeddings)):
            db.add(KnowledgeBaseChunk(
                document_id=document.id,
                content=chunk.content,
                chunk_index=start + offset,
                embedding=embedding,
                chunk_metadata=chunk.metadata,
            ))
        await db.flush()
        processed += len(batch)

    logger.info("Ingested knowledge document %s (%s): %d chunks", document.id, title, processed)
    return document.id, processed


async def search_knowledge_base(
    db: AsyncSession,
    query: str,
    match_threshold: float = 0.7,
    match_count: int = 5,
) -> list[KnowledgeSearchResult]:
    embedding = await generate_embedding(query)
    result = await db.execute(
        _SEARCH_SQL,
        {
            "query_embedding": format_vector(embedding),
            "match_threshold": match_threshold,
            "match_count": match_count,
        },
    )
    return [KnowledgeSearchResult.model_validate(dict(row)) for row in result.mappings().all()]

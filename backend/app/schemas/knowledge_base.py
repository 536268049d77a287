from typing import Any
from uuid import UUID

from pydantic import Field

from app.core.config import settings
from app.schemas.presentation import CamelModel


class KnowledgeChunk(CamelModel):
    """A piece of a knowledge-base document, before embedding."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class IngestRequest(CamelModel):
    title: str = ""
    document_type: str = "document"
    source: str = "manual_upload"
    content: str = ""
    metadata: dict[str, Any] | None = None


class IngestResponse(CamelModel):
    success: bool = True
    document_id: UUID
    chunks_processed: int
    message: str


class SearchRequest(CamelModel):
    query: str = ""
    match_threshold: float = Field(default_factory=lambda: settings.KB_MATCH_THRESHOLD)
    match_count: int = Field(default_factory=lambda: settings.KB_MATCH_COUNT)


class KnowledgeSearchResult(CamelModel):
    id: UUID
    document_id: UUID
    document_title: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float


class SearchResponse(CamelModel):
    success: bool = True
    results: list[KnowledgeSearchResult]
    count: int

from uuid import UUID

from sqlalchemy import Column, JSON, Text
from sqlmodel import Field, Relationship

from app.models.base import BaseUUIDModel
from app.models.vector import EMBEDDING_DIMENSIONS, Vector


class KnowledgeBaseDocument(BaseUUIDModel, table=True):
    __tablename__ = "knowledge_base_documents"

    title: str = Field(max_length=255)
    document_type: str = Field(default="document", max_length=50)  # presentation, document, ...
    source: str = Field(default="manual_upload", max_length=255)
    # "metadata" is reserved on declarative classes
    doc_metadata: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON, default=dict))

    # Relationships
    chunks: list["KnowledgeBaseChunk"] = Relationship(
        back_populates="document",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "KnowledgeBaseChunk.chunk_index"}
    )


class KnowledgeBaseChunk(BaseUUIDModel, table=True):
    __tablename__ = "knowledge_base_chunks"

    document_id: UUID = Field(foreign_key="knowledge_base_documents.id", index=True, ondelete="CASCADE")
    content: str = Field(sa_column=Column(Text, nullable=False))
    chunk_index: int
    embedding: list[float] | None = Field(
        default=None, sa_column=Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    )
    chunk_metadata: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON, default=dict))

    # Relationships
    document: "KnowledgeBaseDocument" = Relationship(back_populates="chunks")

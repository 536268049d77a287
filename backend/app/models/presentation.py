from uuid import UUID

from sqlalchemy import Column, JSON, Text
from sqlmodel import Field, Relationship

from app.models.base import BaseUUIDModel
from app.models.vector import EMBEDDING_DIMENSIONS, Vector


class StoredPresentation(BaseUUIDModel, table=True):
    """An uploaded .pptx kept in the slide library."""

    __tablename__ = "presentations"

    title: str = Field(max_length=255)
    file_name: str = Field(max_length=255)
    total_slides: int = Field(default=0)

    # Relationships
    slides: list["StoredSlide"] = Relationship(
        back_populates="presentation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "StoredSlide.slide_number"}
    )


class StoredSlide(BaseUUIDModel, table=True):
    __tablename__ = "slides"

    presentation_id: UUID = Field(foreign_key="presentations.id", index=True, ondelete="CASCADE")
    slide_number: int
    slide_type: str = Field(max_length=20)  # title, content, toc, thankyou
    title: str = Field(default="", sa_column=Column(Text, default=""))
    content: str = Field(default="", sa_column=Column(Text, default=""))
    bullet_points: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    embedding: list[float] | None = Field(
        default=None, sa_column=Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    )

    # Relationships
    presentation: "StoredPresentation" = Relationship(back_populates="slides")

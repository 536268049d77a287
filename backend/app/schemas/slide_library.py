from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from app.schemas.presentation import CamelModel

LibrarySlideType = Literal["title", "content", "toc", "thankyou"]


# ── Parsed upload ─────────────────────────────────────────────

class ParsedSlide(CamelModel):
    slide_number: int
    slide_type: LibrarySlideType
    title: str
    content: str = ""
    bullet_points: list[str] = Field(default_factory=list)

    def embedding_text(self) -> str:
        return "\n".join([self.title, self.content, *self.bullet_points])


class ParsedPresentation(CamelModel):
    title: str
    file_name: str
    total_slides: int
    slides: list[ParsedSlide] = Field(default_factory=list)


# ── Requests / responses ──────────────────────────────────────

class PresentationSummary(CamelModel):
    id: UUID
    title: str
    total_slides: int


class UploadResponse(CamelModel):
    success: bool = True
    presentation: PresentationSummary


class SimilarSlidesRequest(CamelModel):
    query: str = ""
    limit: int = 5
    slide_type: LibrarySlideType | None = None


class SimilarSlide(CamelModel):
    id: UUID
    presentation_id: UUID
    slide_number: int
    slide_type: str
    title: str
    content: str = ""
    bullet_points: list[str] = Field(default_factory=list)
    similarity: float

    def as_context(self) -> str:
        bullets = ", ".join(self.bullet_points) or "None"
        return f"Title: {self.title}\nContent: {self.content}\nBullet Points: {bullets}"


class SimilarSlidesResponse(CamelModel):
    success: bool = True
    slides: list[SimilarSlide]


class PresentationListItem(CamelModel):
    id: UUID
    title: str
    file_name: str
    total_slides: int
    created_at: datetime


class PresentationListResponse(CamelModel):
    success: bool = True
    presentations: list[PresentationListItem]

from __future__ import annotations

from pydantic import Field

from app.schemas.presentation import CamelModel, StructuredData


class UploadedDocument(CamelModel):
    name: str
    mime_type: str = ""
    raw_bytes: bytes = b""


class ExtractedDocument(CamelModel):
    name: str
    mime_type: str = ""
    text: str
    structured_data: StructuredData | None = Field(default=None)

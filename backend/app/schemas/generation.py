from pydantic import Field

from app.schemas.ingestion import UploadedDocument
from app.schemas.presentation import CamelModel, Presentation


class GenerationRequest(CamelModel):
    """Parsed ``generate-presentation`` multipart form."""

    title: str
    summary: str
    date: str = ""
    table_of_contents: str = ""
    files: list[UploadedDocument] = Field(default_factory=list)
    use_similar_content: bool = False
    use_knowledge_base: bool = False
    include_annexure: bool = False


class GenerateRequest(CamelModel):
    topic: str = ""
    slide_count: int = Field(default=5, ge=1, le=30)
    use_similar_content: bool = True


class GenerateResponse(CamelModel):
    success: bool = True
    presentation: Presentation


class ExportRequest(CamelModel):
    presentation: Presentation

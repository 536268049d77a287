# Import all models so SQLModel.metadata registers them for Alembic autogenerate.
from app.models.base import BaseUUIDModel  # noqa: F401
from app.models.presentation import StoredPresentation, StoredSlide  # noqa: F401
from app.models.knowledge_base import KnowledgeBaseChunk, KnowledgeBaseDocument  # noqa: F401

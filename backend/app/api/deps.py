"""
Shared FastAPI dependencies — single source of truth for DI.

All routers should import get_db from HERE, not directly from db.database.
"""

from fastapi import Request
from sqlmodel.ext.asyncio.session import AsyncSession

from app.db.database import get_db as _get_db
from app.controllers.generation_controller import parse_generation_form
from app.schemas.generation import GenerationRequest

__all__ = ["get_db", "get_generation_request"]


async def get_db() -> AsyncSession:
    """Yield an async database session."""
    async for session in _get_db():
        yield session


async def get_generation_request(request: Request) -> GenerationRequest:
    """
    Parse the ``generate-presentation`` multipart form. Files arrive under
    dynamic ``file_0..N`` keys, so the form is read directly instead of being
    declared parameter by parameter.
    """
    form = await request.form()
    return await parse_generation_form(form)

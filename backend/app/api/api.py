"""API — aggregates all routers under a single prefix."""

from fastapi import APIRouter

from app.api.routers import export, generation, knowledge_base, presentations

router = APIRouter()
router.include_router(generation.router)
router.include_router(export.router)
router.include_router(knowledge_base.router)
router.include_router(presentations.router)

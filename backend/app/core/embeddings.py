"""OpenAI embeddings for knowledge-base chunks and library slides."""

import logging

from openai import AsyncOpenAI, OpenAIError

from app.core.ai_generators import require_openai_key
from app.core.config import settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

_client: AsyncOpenAI | None = None


def get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=require_openai_key())
    return _client


async def generate_embedding(text: str) -> list[float]:
    try:
        response = await get_client().embeddings.create(
            model=settings.EMBEDDING_MODEL,
            input=text,
            encoding_format="float",
        )
    except OpenAIError as e:
        logger.error("Embedding request failed: %s", e)
        raise UpstreamError("Failed to generate embedding", str(e)) from e
    return response.data[0].embedding


async def generate_embeddings(texts: list[str]) -> list[list[float]]:
    """Embed ``texts`` in one request; result order matches input order."""
    if not texts:
        return []
    try:
        response = await get_client().embeddings.create(
            model=settings.EMBEDDING_MODEL,
            input=texts,
            encoding_format="float",
        )
    except OpenAIError as e:
        logger.error("Batch embedding request for %d texts failed: %s", len(texts), e)
        raise UpstreamError("Failed to generate embeddings", str(e)) from e
    return [item.embedding for item in sorted(response.data, key=lambda item: item.index)]

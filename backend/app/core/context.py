"""
Context assembly: the table of contents and the bounded context string that
every slide prompt draws from.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from app.core.ai_generators import model_settings, toc_agent, toc_insights_agent
from app.core.config import settings
from app.core.throttle import FixedIntervalThrottle
from app.schemas.ingestion import ExtractedDocument
from app.schemas.presentation import TocItem

logger = logging.getLogger(__name__)

DEFAULT_SECTIONS = (
    "Executive Summary",
    "Operational Overview",
    "Financial Performance",
    "Strategic Analysis",
    "Production Metrics",
    "Environmental Compliance",
    "Technology Adoption",
    "Risk Assessment",
    "Market Analysis",
    "Investment Strategy",
    "Human Resources",
    "Safety Performance",
    "Sustainability Initiatives",
    "Future Roadmap",
    "Conclusion",
)

_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")

TOC_CHUNK_SIZE = 1000
TOC_BATCH_SIZE = 3


@dataclass(frozen=True)
class DocumentChunk:
    name: str
    text: str
    chunk_index: int
    total_chunks: int


@dataclass(frozen=True)
class AssembledContext:
    toc: list[TocItem]
    context_text: str


def parse_user_toc(text: str | None) -> list[TocItem]:
    """Split a free-text TOC into items, one per non-empty line.

    The raw (stripped) line is kept as ``label``; ``title`` drops a leading
    ``"N. "`` numbering prefix.
    """
    items = []
    for line in (text or "").splitlines():
        label = line.strip()
        if not label:
            continue
        title = _NUMBER_PREFIX.sub("", label).strip()
        items.append(TocItem(label=label, title=title or label))
    return items


def default_toc() -> list[TocItem]:
    return [
        TocItem(label=f"{i}. {section}", title=section)
        for i, section in enumerate(DEFAULT_SECTIONS, start=1)
    ]


def build_context_text(
    docs: Sequence[ExtractedDocument],
    knowledge: Iterable[str] = (),
    similar: Iterable[str] = (),
    limit: int | None = None,
) -> str:
    """Concatenate document texts (each tagged by file name) plus optional
    knowledge-base and similar-slide snippets, truncated to ``limit`` chars."""
    limit = settings.CONTEXT_CHAR_LIMIT if limit is None else limit
    sections = [f"=== {doc.name} ===\n{doc.text.strip()}" for doc in docs]

    knowledge = [k.strip() for k in knowledge if k and k.strip()]
    if knowledge:
        sections.append("=== Knowledge base ===\n" + "\n\n".join(knowledge))

    similar = [s.strip() for s in similar if s and s.strip()]
    if similar:
        sections.append("=== Similar slides ===\n" + "\n\n".join(similar))

    return "\n\n".join(sections)[:limit]


def chunk_documents(docs: Sequence[ExtractedDocument], chunk_size: int = TOC_CHUNK_SIZE) -> list[DocumentChunk]:
    chunks = []
    for doc in docs:
        pieces = [doc.text[i:i + chunk_size] for i in range(0, len(doc.text), chunk_size)]
        for index, piece in enumerate(pieces):
            chunks.append(DocumentChunk(name=doc.name, text=piece, chunk_index=index, total_chunks=len(pieces)))
    return chunks


async def synthesize_toc(
    title: str,
    summary: str,
    docs: Sequence[ExtractedDocument],
    throttle: FixedIntervalThrottle | None = None,
) -> list[TocItem]:
    """Ask the LLM for a TOC grounded on the uploaded documents.

    Chunk batches that fail are skipped.  If the final TOC request fails or
    yields nothing usable, the static default TOC is returned.
    """
    throttle = throttle or FixedIntervalThrottle(settings.LLM_REQUEST_INTERVAL_SECONDS)
    chunks = chunk_documents(docs)
    insights: list[str] = []

    for start in range(0, len(chunks), TOC_BATCH_SIZE):
        batch = chunks[start:start + TOC_BATCH_SIZE]
        prompt = "Analyze these document chunks and extract key topics and insights:\n\n" + "\n".join(
            f"Chunk {i + 1} from {chunk.name}:\n{chunk.text}\n" for i, chunk in enumerate(batch)
        )
        await throttle()
        try:
            result = await toc_insights_agent.run(
                prompt,
                model_settings=model_settings(settings.TOC_TEMPERATURE, 1000),
            )
            insights.append(result.output)
        except Exception:
            logger.warning("TOC insight extraction failed for chunk batch %d", start // TOC_BATCH_SIZE, exc_info=True)

    insight_text = "\n".join(insights)
    prompt = (
        f'Generate a comprehensive table of contents for "{title}".\n'
        f"Summary: {summary}\n\n"
        f"Document insights:\n{insight_text}\n\n"
        "Create 15-20 detailed sections. Return only numbered list items (1. Item Name), one per line."
    )
    await throttle()
    try:
        result = await toc_agent.run(
            prompt,
            model_settings=model_settings(settings.TOC_TEMPERATURE, settings.TOC_MAX_TOKENS),
        )
    except Exception:
        logger.warning("TOC generation failed, using default sections", exc_info=True)
        return default_toc()

    toc = parse_user_toc(result.output)
    # Drop headings or commentary the model wrapped around the numbered list
    numbered = [item for item in toc if item.label != item.title]
    if numbered:
        toc = numbered
    if not toc:
        logger.warning("TOC generation returned no sections, using default sections")
        return default_toc()
    return toc


async def assemble(
    docs: Sequence[ExtractedDocument],
    user_toc: str | None = None,
    *,
    title: str = "",
    summary: str = "",
    knowledge: Iterable[str] = (),
    similar: Iterable[str] = (),
    synthesize: bool = True,
    throttle: FixedIntervalThrottle | None = None,
) -> AssembledContext:
    """Derive the TOC and the bounded context string for a generation request.

    A non-empty ``user_toc`` is used verbatim.  Without one, the TOC is
    synthesized by the LLM when there are documents to ground it on, and is
    the static 15-section default otherwise.
    """
    toc = parse_user_toc(user_toc)
    if not toc:
        if docs and synthesize:
            toc = await synthesize_toc(title, summary, docs, throttle)
        else:
            toc = default_toc()

    context_text = build_context_text(docs, knowledge, similar)
    logger.info("Assembled context: %d TOC items, %d context chars", len(toc), len(context_text))
    return AssembledContext(toc=toc, context_text=context_text)

import logging
from datetime import date as date_cls

from starlette.datastructures import FormData, UploadFile
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import context, ingestion
from app.core.ai_generators import QuickDeckDraft, model_settings, quick_deck_agent, require_openai_key
from app.core.config import settings
from app.core.deck_assembler import assemble_deck, generate_annexure, merge_structured
from app.core.exceptions import InvalidRequestError
from app.core.knowledge_base import search_knowledge_base
from app.core.slide_generator import DeckMeta, SlideContentGenerator
from app.core.slide_library import search_similar_slides
from app.core.slide_templates import get_profile, select_template
from app.core.throttle import FixedIntervalThrottle
from app.schemas.generation import GenerateRequest, GenerationRequest
from app.schemas.ingestion import UploadedDocument
from app.schemas.presentation import ContentSlide, Presentation, TocItem

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"true", "1", "yes", "on"}


def today() -> str:
    return date_cls.today().strftime("%B %d, %Y")


def _form_flag(form: FormData, key: str) -> bool:
    value = form.get(key)
    return isinstance(value, str) and value.strip().lower() in _TRUE_VALUES


def _form_text(form: FormData, key: str) -> str:
    value = form.get(key)
    return value.strip() if isinstance(value, str) else ""


async def parse_generation_form(form: FormData) -> GenerationRequest:
    """Validate the multipart form and read every ``file_N`` upload."""
    title = _form_text(form, "title")
    summary = _form_text(form, "summary")
    if not title or not summary:
        raise InvalidRequestError("Missing required fields", "Both title and summary are required")

    files = []
    for key, value in form.multi_items():
        if key.startswith("file_") and isinstance(value, UploadFile):
            files.append(UploadedDocument(
                name=value.filename or key,
                mime_type=value.content_type or "",
                raw_bytes=await value.read(),
            ))

    return GenerationRequest(
        title=title,
        summary=summary,
        date=_form_text(form, "date"),
        table_of_contents=_form_text(form, "tableOfContents"),
        files=files,
        use_similar_content=_form_flag(form, "useSimilarContent"),
        use_knowledge_base=_form_flag(form, "useKnowledgeBase"),
        include_annexure=_form_flag(form, "includeAnnexure"),
    )


async def _knowledge_snippets(db: AsyncSession, query: str) -> list[str]:
    """Knowledge-base chunks relevant to ``query``; lookup failures are logged and ignored."""
    try:
        results = await search_knowledge_base(
            db, query, settings.KB_MATCH_THRESHOLD, settings.KB_MATCH_COUNT
        )
    except Exception:
        logger.warning("Knowledge base lookup failed, continuing without it", exc_info=True)
        await db.rollback()
        return []
    return [f"[{r.document_title}] {r.content}" for r in results]


async def _similar_snippets(db: AsyncSession, query: str) -> list[str]:
    try:
        slides = await search_similar_slides(
            db, query, settings.SIMILAR_MATCH_THRESHOLD, settings.SIMILAR_MATCH_COUNT
        )
    except Exception:
        logger.warning("Similar slide lookup failed, continuing without it", exc_info=True)
        await db.rollback()
        return []
    return [f"Example {i}:\n{slide.as_context()}" for i, slide in enumerate(slides, start=1)]


async def generate_presentation(request: GenerationRequest, db: AsyncSession) -> Presentation:
    """Full pipeline: ingest, assemble context, generate slides, assemble deck."""
    require_openai_key()

    docs = await ingestion.extract_all(request.files)

    query = f"{request.title}\n{request.summary}"
    knowledge = await _knowledge_snippets(db, query) if request.use_knowledge_base else []
    similar = await _similar_snippets(db, query) if request.use_similar_content else []

    throttle = FixedIntervalThrottle(settings.LLM_REQUEST_INTERVAL_SECONDS)
    assembled = await context.assemble(
        docs,
        request.table_of_contents,
        title=request.title,
        summary=request.summary,
        knowledge=knowledge,
        similar=similar,
        throttle=throttle,
    )

    meta = DeckMeta(title=request.title, summary=request.summary, date=request.date or today())
    generator = SlideContentGenerator(throttle=throttle)
    slides = await generator.generate_all(assembled.toc, assembled.context_text, meta, merge_structured(docs))

    annexure = await generate_annexure(request.title, slides, throttle) if request.include_annexure else []

    presentation = assemble_deck(meta.title, meta.date, assembled.toc, slides, annexure)
    logger.info("Generated presentation %r with %d slides", presentation.title, len(presentation.slides))
    return presentation


# ── Quick deck (topic -> outline) ─────────────────────────────

def _quick_deck_prompt(request: GenerateRequest, examples: list[str]) -> str:
    prompt = (
        f'Create a professional business presentation about "{request.topic}" '
        f"with {request.slide_count} content slides."
    )
    if examples:
        prompt += (
            "\n\nHere are examples from similar presentations for reference:\n\n"
            + "\n\n".join(examples)
        )
    return prompt


def _fallback_quick_deck(request: GenerateRequest) -> tuple[list[TocItem], list[ContentSlide]]:
    toc = context.default_toc()[:request.slide_count]
    slides = [
        get_profile(select_template(item.title)).fallback_slide(
            item.title, index, settings.MIN_BULLETS, settings.MIN_METRICS
        )
        for index, item in enumerate(toc)
    ]
    return toc, slides


async def generate_quick_deck(request: GenerateRequest, db: AsyncSession) -> Presentation:
    """Outline a deck from a single topic line.

    On LLM failure the sections are the first ``slide_count`` default TOC
    sections filled with template fallback content.
    """
    topic = request.topic.strip()
    if not topic:
        raise InvalidRequestError("Topic is required")
    require_openai_key()

    examples = await _similar_snippets(db, topic) if request.use_similar_content else []

    try:
        result = await quick_deck_agent.run(
            _quick_deck_prompt(request, examples),
            model_settings=model_settings(settings.SLIDE_TEMPERATURE, settings.SLIDE_MAX_TOKENS),
        )
        draft: QuickDeckDraft | None = result.output
    except Exception:
        logger.warning("Quick deck generation failed for %r, using default sections", topic, exc_info=True)
        draft = None

    sections = [s for s in draft.sections if s.bullet_points] if draft is not None else []
    if sections:
        sections = sections[:request.slide_count]
        toc = [TocItem(label=f"{i}. {s.title}", title=s.title) for i, s in enumerate(sections, start=1)]
        slides = [
            ContentSlide(title=s.title, subtitle=s.subtitle, content=s.bullet_points)
            for s in sections
        ]
        title, subtitle = draft.title or topic, draft.subtitle
    else:
        toc, slides = _fallback_quick_deck(request)
        title, subtitle = topic, None

    return assemble_deck(title, today(), toc, slides, subtitle=subtitle)

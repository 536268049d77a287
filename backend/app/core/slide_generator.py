"""
Per-section slide generation.

One LLM request per TOC item, issued sequentially through a throttle.  A
request that fails, or returns fewer bullets/metrics than required, is
replaced by the template's deterministic fallback slide, so a full deck is
always produced.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from app.core.ai_generators import SlideDraft, model_settings, slide_content_agent
from app.core.config import settings
from app.core.slide_templates import SlideTemplate, get_profile, select_template
from app.core.throttle import FixedIntervalThrottle
from app.schemas.presentation import ContentSlide, StructuredData, TocItem

logger = logging.getLogger(__name__)

RELEVANT_CONTEXT_CHARS = 3000

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")

_TARGET_SCHEMA = """\
{
  "content": ["8-10 detailed bullet points with specific metrics and data"],
  "metrics": [{"label": "Key Metric", "value": "Value", "change": "+X%", "target": "optional", "benchmark": "optional"}],
  "tables": [{"title": "Table title", "headers": ["Col A", "Col B"], "rows": [["a1", "b1"]]}],
  "charts": [{"type": "bar|line|pie", "title": "Chart title", "data": [{"label": "Q1", "value": 1.0, "target": 1.2}]}],
  "keyInsights": ["Critical insight based on the document analysis"]
}"""


@dataclass(frozen=True)
class DeckMeta:
    title: str
    summary: str = ""
    date: str = ""


def find_relevant_context(context_text: str, keywords: Sequence[str], limit: int = RELEVANT_CONTEXT_CHARS) -> str:
    """Keep sentences of ``context_text`` that mention any keyword.

    Falls back to the head of the context when nothing matches.
    """
    if not context_text:
        return ""
    lowered = [k.lower() for k in keywords if k]
    picked: list[str] = []
    size = 0
    for sentence in _SENTENCE_SPLIT.split(context_text):
        sentence = sentence.strip()
        if not sentence:
            continue
        text = sentence.lower()
        if any(k in text for k in lowered):
            if size + len(sentence) > limit:
                break
            picked.append(sentence)
            size += len(sentence) + 1
    if not picked:
        return context_text[:limit]
    return " ".join(picked)


def slide_keywords(title: str, template: SlideTemplate) -> list[str]:
    words = [w for w in re.findall(r"[A-Za-z]+", title.lower()) if len(w) > 3]
    return words + list(get_profile(template).keywords)


def build_slide_prompt(
    position: int,
    toc_item: TocItem,
    template: SlideTemplate,
    relevant_context: str,
    meta: DeckMeta,
    min_bullets: int,
    min_metrics: int,
) -> str:
    profile = get_profile(template)
    return (
        f'Create comprehensive content for slide {position}: "{toc_item.title}"\n\n'
        f"PRESENTATION CONTEXT:\n"
        f"Title: {meta.title}\n"
        f"Summary: {meta.summary}\n\n"
        f"TOPIC FOCUS: {profile.focus}\n\n"
        f"RELEVANT DOCUMENT CONTENT:\n{relevant_context or '(no documents supplied)'}\n\n"
        f"REQUIREMENTS:\n"
        f"- At least {min_bullets} bullet points in `content`\n"
        f"- At least {min_metrics} metrics\n"
        f"- 1-2 tables and 1-2 charts\n"
        f"- 3-5 key insights\n\n"
        f"JSON STRUCTURE:\n{_TARGET_SCHEMA}"
    )


class SlideContentGenerator:
    """Turns TOC items into content slides, one throttled LLM call each."""

    def __init__(
        self,
        throttle: FixedIntervalThrottle | None = None,
        min_bullets: int | None = None,
        min_metrics: int | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ):
        self.throttle = throttle or FixedIntervalThrottle(settings.LLM_REQUEST_INTERVAL_SECONDS)
        self.min_bullets = settings.MIN_BULLETS if min_bullets is None else min_bullets
        self.min_metrics = settings.MIN_METRICS if min_metrics is None else min_metrics
        self.model_settings = model_settings(
            settings.SLIDE_TEMPERATURE if temperature is None else temperature,
            settings.SLIDE_MAX_TOKENS if max_tokens is None else max_tokens,
        )

    def is_acceptable(self, draft: SlideDraft) -> bool:
        bullets = [b for b in draft.content if b and b.strip()]
        return len(bullets) >= self.min_bullets and len(draft.metrics) >= self.min_metrics

    async def _request_draft(self, prompt: str) -> SlideDraft:
        result = await slide_content_agent.run(prompt, model_settings=self.model_settings)
        return result.output

    async def generate(
        self,
        index: int,
        toc_item: TocItem,
        context_text: str,
        meta: DeckMeta,
        structured: StructuredData | None = None,
    ) -> ContentSlide:
        """Build the content slide for ``toc_item`` (``index`` is 0-based).

        Never raises.
        """
        template = select_template(toc_item.title)
        profile = get_profile(template)
        relevant = find_relevant_context(context_text, slide_keywords(toc_item.title, template))
        prompt = build_slide_prompt(
            index + 1, toc_item, template, relevant, meta, self.min_bullets, self.min_metrics
        )

        await self.throttle()
        try:
            draft = await self._request_draft(prompt)
        except Exception:
            logger.warning("Slide %d (%s) generation failed, using fallback", index + 1, toc_item.title, exc_info=True)
            slide = profile.fallback_slide(toc_item.title, index, self.min_bullets, self.min_metrics)
        else:
            if self.is_acceptable(draft):
                slide = ContentSlide(
                    title=toc_item.title,
                    content=[b.strip() for b in draft.content if b and b.strip()],
                    metrics=draft.metrics,
                    key_insights=draft.key_insights,
                    tables=[t for t in draft.tables if t.headers][:2],
                    charts=[c for c in draft.charts if c.data][:2],
                )
            else:
                logger.info(
                    "Slide %d (%s) draft too thin (%d bullets, %d metrics), using fallback",
                    index + 1, toc_item.title, len(draft.content), len(draft.metrics),
                )
                slide = profile.fallback_slide(toc_item.title, index, self.min_bullets, self.min_metrics)

        return attach_structured(slide, index, structured)

    async def generate_all(
        self,
        toc: Sequence[TocItem],
        context_text: str,
        meta: DeckMeta,
        structured: StructuredData | None = None,
    ) -> list[ContentSlide]:
        logger.info("Generating %d content slides", len(toc))
        slides = []
        for index, item in enumerate(toc):
            slides.append(await self.generate(index, item, context_text, meta, structured))
        return slides


def attach_structured(slide: ContentSlide, index: int, structured: StructuredData | None) -> ContentSlide:
    """Append the document-mined chart, table and image at position ``index``, if any."""
    if structured is None:
        return slide
    charts = list(slide.charts)
    tables = list(slide.tables)
    images = list(slide.images)
    if index < len(structured.charts):
        charts.append(structured.charts[index])
    if index < len(structured.tables):
        tables.append(structured.tables[index])
    if index < len(structured.images):
        images.append(structured.images[index])
    return slide.model_copy(update={"charts": charts, "tables": tables, "images": images})

"""
AI agents used by the deck generation pipeline.

Agents
------
- **toc_insights_agent**  – Summarises document chunks into key topics
- **toc_agent**           – Writes a numbered table of contents from those topics
- **slide_content_agent** – Structured JSON content for one content slide
- **annexure_agent**      – Three supplementary slides with detailed tables/charts
- **quick_deck_agent**    – Whole-deck outline from a single topic line

All agents defer model resolution to the first run, so importing this module
never needs an API key.  Call ``require_openai_key`` before running one.
"""

import os

from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.schemas.presentation import CamelModel, Chart, Metric, Table


def require_openai_key() -> str:
    """Return the configured OpenAI key or raise ``ConfigurationError``.

    The key is exported to the environment so the OpenAI provider behind the
    agents picks it up.
    """
    key = settings.OPENAI_API_KEY
    if not key:
        raise ConfigurationError(
            "OpenAI API key not configured",
            "Set OPENAI_API_KEY in the environment or .env file",
        )
    os.environ.setdefault("OPENAI_API_KEY", key)
    return key


def model_settings(temperature: float, max_tokens: int) -> ModelSettings:
    return ModelSettings(temperature=temperature, max_tokens=max_tokens)


# ---------------------------------------------------------------------------
# Output models
# ---------------------------------------------------------------------------

class SlideDraft(CamelModel):
    """What the slide agent returns.  Lenient on purpose: the generator
    decides whether the draft is good enough or falls back."""

    content: list[str] = Field(default_factory=list)
    metrics: list[Metric] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    charts: list[Chart] = Field(default_factory=list)


class AnnexureSlideDraft(CamelModel):
    title: str
    content: list[str] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    charts: list[Chart] = Field(default_factory=list)


class AnnexureDraft(BaseModel):
    slides: list[AnnexureSlideDraft] = Field(default_factory=list)


class QuickDeckSection(CamelModel):
    title: str
    subtitle: str | None = None
    bullet_points: list[str] = Field(default_factory=list)


class QuickDeckDraft(CamelModel):
    title: str
    subtitle: str | None = None
    sections: list[QuickDeckSection] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# 1.  Table-of-contents agents
# ---------------------------------------------------------------------------

_TOC_INSIGHTS_SYSTEM_PROMPT = """\
You extract key insights and topics from document chunks.  The topics will be \
used to plan the table of contents of a business presentation.  Be concise: \
return a short list of topics with the most important figures for each.
"""

toc_insights_agent = Agent(
    model=settings.OPENAI_MODEL,
    output_type=str,
    system_prompt=_TOC_INSIGHTS_SYSTEM_PROMPT,
    defer_model_check=True,
)

_TOC_SYSTEM_PROMPT = """\
You plan comprehensive business presentations.  Given a title, a summary and \
document insights, produce a table of contents with 15-20 detailed sections.

Return ONLY numbered list items, one per line, in the form ``1. Section Name``.  \
No headings, no commentary.
"""

toc_agent = Agent(
    model=settings.OPENAI_MODEL,
    output_type=str,
    system_prompt=_TOC_SYSTEM_PROMPT,
    defer_model_check=True,
)


# ---------------------------------------------------------------------------
# 2.  Slide content agent
# ---------------------------------------------------------------------------

_SLIDE_SYSTEM_PROMPT = """\
You write exhaustive, data-rich content for a single slide of a corporate \
presentation.

## Rules

- Ground every statement in the supplied document context when it has \
  relevant data; otherwise write realistic, clearly qualitative content.
- Bullet points are complete sentences with specific figures where available.
- Every table row has exactly as many cells as the table has headers.
- Chart data points have a text ``label`` and a numeric ``value``.
- Respond with structured output only.
"""

slide_content_agent = Agent(
    model=settings.OPENAI_MODEL,
    output_type=SlideDraft,
    system_prompt=_SLIDE_SYSTEM_PROMPT,
    defer_model_check=True,
    retries=1,
)


# ---------------------------------------------------------------------------
# 3.  Annexure agent
# ---------------------------------------------------------------------------

_ANNEXURE_SYSTEM_PROMPT = """\
You prepare annexure slides that follow the main body of a presentation.  \
Given the text of every content slide, propose exactly THREE supplementary \
slides:

1. **Detailed financial breakdown** — a table with at least 5 rows
2. **Benchmarking** — comparison against industry peers, a table and a bar chart
3. **Projections** — multi-year projections, a table and a line chart

Every table row must have exactly as many cells as there are headers.
"""

annexure_agent = Agent(
    model=settings.OPENAI_MODEL,
    output_type=AnnexureDraft,
    system_prompt=_ANNEXURE_SYSTEM_PROMPT,
    defer_model_check=True,
    retries=1,
)


# ---------------------------------------------------------------------------
# 4.  Quick deck agent  (topic -> outline)
# ---------------------------------------------------------------------------

_QUICK_DECK_SYSTEM_PROMPT = """\
You are a professional presentation designer.  Given a topic and a number of \
content slides, produce a well-structured presentation outline: a title, an \
optional subtitle, and one section per content slide with 3-6 concise, \
professional bullet points.

If example slides from similar presentations are provided, follow their style, \
terminology and formatting patterns.
"""

quick_deck_agent = Agent(
    model=settings.OPENAI_FAST_MODEL,
    output_type=QuickDeckDraft,
    system_prompt=_QUICK_DECK_SYSTEM_PROMPT,
    defer_model_check=True,
)

"""
Deck assembly: wraps generated content slides with the title, table of
contents, thank-you and optional annexure slides.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from app.core.ai_generators import annexure_agent, model_settings
from app.core.config import settings
from app.core.throttle import FixedIntervalThrottle
from app.schemas.ingestion import ExtractedDocument
from app.schemas.presentation import (
    AnnexureSlide,
    Chart,
    ChartPoint,
    ContentSlide,
    Presentation,
    StructuredData,
    Table,
    ThankYouSlide,
    TitleSlide,
    TocItem,
    TocSlide,
)

logger = logging.getLogger(__name__)

ANNEXURE_SLIDE_COUNT = 3


def assemble_deck(
    title: str,
    date: str,
    toc: Sequence[TocItem],
    content_slides: Sequence[ContentSlide],
    annexure: Iterable[AnnexureSlide] = (),
    subtitle: str | None = None,
) -> Presentation:
    """Order the slides into a valid ``Presentation``.

    The table-of-contents slide is only added when ``toc`` is non-empty and
    lists the raw TOC labels.
    """
    slides: list = [TitleSlide(title=title, date=date, subtitle=subtitle)]
    if toc:
        slides.append(TocSlide(items=[item.label for item in toc]))
    slides.extend(content_slides)
    slides.append(ThankYouSlide())
    slides.extend(annexure)
    return Presentation(title=title, date=date, slides=slides)


def merge_structured(docs: Sequence[ExtractedDocument]) -> StructuredData:
    charts: list[Chart] = []
    tables: list[Table] = []
    metrics = []
    images = []
    for doc in docs:
        if doc.structured_data is None:
            continue
        charts.extend(doc.structured_data.charts)
        tables.extend(doc.structured_data.tables)
        metrics.extend(doc.structured_data.metrics)
        images.extend(doc.structured_data.images)
    return StructuredData(charts=charts, tables=tables, metrics=metrics, images=images)


def default_annexure(title: str) -> list[AnnexureSlide]:
    """Three deterministic annexure slides used when the LLM is unavailable."""
    return [
        AnnexureSlide(
            title="Annexure A: Detailed Financial Breakdown",
            content=[
                f"Line-item view of the financial figures behind {title}",
                "Figures in crore unless stated otherwise",
            ],
            tables=[Table(
                title="Financial Breakdown",
                headers=["Line Item", "FY Previous", "FY Current", "Change"],
                rows=[
                    ["Revenue", "1,850", "2,000", "+8.1%"],
                    ["Operating Costs", "1,295", "1,360", "+5.0%"],
                    ["EBITDA", "555", "640", "+15.3%"],
                    ["Depreciation", "85", "92", "+8.2%"],
                    ["Net Profit", "370", "420", "+13.5%"],
                ],
            )],
        ),
        AnnexureSlide(
            title="Annexure B: Industry Benchmarking",
            content=["Comparison of key ratios against the industry average and best-in-class peers"],
            tables=[Table(
                title="Benchmark Comparison",
                headers=["Metric", "Company", "Industry Average", "Best in Class"],
                rows=[
                    ["EBITDA Margin", "32%", "26%", "35%"],
                    ["Capacity Utilisation", "87.5%", "80%", "92%"],
                    ["Compliance Score", "96.5%", "92%", "98%"],
                    ["Digital Adoption", "73%", "55%", "85%"],
                ],
            )],
            charts=[Chart(
                type="bar",
                title="EBITDA Margin vs Peers (%)",
                data=[
                    ChartPoint(label="Company", value=32, target=35),
                    ChartPoint(label="Industry Average", value=26),
                    ChartPoint(label="Best in Class", value=35),
                ],
            )],
        ),
        AnnexureSlide(
            title="Annexure C: Multi-Year Projections",
            content=["Projections assume steady demand growth and the planned capacity additions"],
            tables=[Table(
                title="Projections",
                headers=["Year", "Revenue", "EBITDA", "Production"],
                rows=[
                    ["Year 1", "2,160", "700", "17.0 MT"],
                    ["Year 2", "2,330", "765", "18.2 MT"],
                    ["Year 3", "2,510", "835", "19.5 MT"],
                ],
            )],
            charts=[Chart(
                type="line",
                title="Revenue Projection",
                data=[
                    ChartPoint(label="Year 1", value=2160),
                    ChartPoint(label="Year 2", value=2330),
                    ChartPoint(label="Year 3", value=2510),
                ],
            )],
        ),
    ]


def _annexure_prompt(title: str, content_slides: Sequence[ContentSlide]) -> str:
    lines = [f'Presentation: "{title}"', "", "Content slides:"]
    for slide in content_slides:
        lines.append(f"## {slide.title}")
        lines.extend(f"- {bullet}" for bullet in slide.content)
    return "\n".join(lines)


async def generate_annexure(
    title: str,
    content_slides: Sequence[ContentSlide],
    throttle: FixedIntervalThrottle | None = None,
) -> list[AnnexureSlide]:
    """Ask the LLM for three annexure slides, falling back to
    ``default_annexure`` on failure or a short answer.  Never raises."""
    if throttle is not None:
        await throttle()
    try:
        result = await annexure_agent.run(
            _annexure_prompt(title, content_slides),
            model_settings=model_settings(settings.SLIDE_TEMPERATURE, settings.SLIDE_MAX_TOKENS),
        )
    except Exception:
        logger.warning("Annexure generation failed, using default annexure", exc_info=True)
        return default_annexure(title)

    drafts = result.output.slides
    if len(drafts) < ANNEXURE_SLIDE_COUNT:
        logger.info("Annexure draft had %d slides, using default annexure", len(drafts))
        return default_annexure(title)

    return [
        AnnexureSlide(title=d.title, content=d.content, tables=d.tables, charts=d.charts)
        for d in drafts[:ANNEXURE_SLIDE_COUNT]
    ]

from pydantic_ai.models.test import TestModel

from app.core import ai_generators
from app.core.slide_generator import (
    DeckMeta,
    SlideContentGenerator,
    build_slide_prompt,
    find_relevant_context,
    slide_keywords,
)
from app.core.slide_templates import MIN_BULLETS, MIN_METRICS, SlideTemplate
from app.schemas.presentation import Chart, ChartPoint, Image, StructuredData, Table, TocItem

META = DeckMeta(title="Q1 Review", summary="Quarterly update", date="January 01, 2026")


class CountingThrottle:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


def _good_draft() -> dict:
    return {
        "content": [f"Point {i} with a figure of {i * 10}%" for i in range(1, 10)],
        "metrics": [{"label": f"M{i}", "value": str(i), "change": "+1%"} for i in range(3)],
        "keyInsights": ["Revenue is up"],
        "tables": [
            {"title": "Good", "headers": ["A", "B"], "rows": [["1"]]},
            {"title": "Empty", "headers": [], "rows": []},
        ],
        "charts": [
            {"type": "bar", "title": "Has data", "data": [{"label": "Q1", "value": 1}]},
            {"type": "bar", "title": "No data", "data": []},
        ],
    }


def test_find_relevant_context_picks_matching_sentences():
    text = "Revenue rose sharply. Weather was mild. Costs fell by 3%.\nStaff numbers were flat."
    assert find_relevant_context(text, ["revenue", "costs"]) == "Revenue rose sharply. Costs fell by 3%."


def test_find_relevant_context_falls_back_to_head():
    assert find_relevant_context("abcdefghij", ["zzz"], limit=4) == "abcd"
    assert find_relevant_context("", ["revenue"]) == ""


def test_slide_keywords_include_title_words_and_template_keywords():
    keywords = slide_keywords("Risk and Safety Review", SlideTemplate.RISK_MANAGEMENT)

    assert keywords[:3] == ["risk", "safety", "review"]
    assert "compliance" in keywords
    assert "and" not in keywords


def test_build_slide_prompt_mentions_requirements():
    prompt = build_slide_prompt(
        3, TocItem(label="3. Numbers", title="Numbers"), SlideTemplate.FINANCIAL_ANALYSIS,
        "Revenue rose.", META, MIN_BULLETS, MIN_METRICS,
    )

    assert 'slide 3: "Numbers"' in prompt
    assert "Title: Q1 Review" in prompt
    assert "Revenue rose." in prompt
    assert f"At least {MIN_BULLETS} bullet points" in prompt
    assert "keyInsights" in prompt


async def test_llm_failure_produces_fallback_slide(failing_llm):
    generator = SlideContentGenerator(throttle=CountingThrottle())
    slide = await generator.generate(0, TocItem(label="1. Intro", title="Intro"), "", META)

    assert slide.title == "Intro"
    assert len(slide.content) >= MIN_BULLETS
    assert len(slide.metrics) >= MIN_METRICS


async def test_thin_draft_is_replaced_by_fallback():
    thin = TestModel(custom_output_args={"content": ["one", "two"], "metrics": []})
    generator = SlideContentGenerator(throttle=CountingThrottle())

    with ai_generators.slide_content_agent.override(model=thin):
        slide = await generator.generate(0, TocItem(label="Numbers", title="Numbers"), "", META)

    assert "one" not in slide.content
    assert len(slide.content) >= MIN_BULLETS
    assert len(slide.metrics) >= MIN_METRICS


async def test_good_draft_is_used():
    generator = SlideContentGenerator(throttle=CountingThrottle())

    with ai_generators.slide_content_agent.override(model=TestModel(custom_output_args=_good_draft())):
        slide = await generator.generate(0, TocItem(label="1. Numbers", title="Numbers"), "Revenue rose.", META)

    assert slide.title == "Numbers"
    assert slide.content[0] == "Point 1 with a figure of 10%"
    assert len(slide.metrics) == 3
    assert slide.key_insights == ["Revenue is up"]
    assert [t.title for t in slide.tables] == ["Good"]
    assert slide.tables[0].rows == [["1", ""]]
    assert [c.title for c in slide.charts] == ["Has data"]


async def test_structured_data_is_distributed_by_position(failing_llm):
    structured = StructuredData(
        charts=[Chart(title=f"Doc chart {i}", data=[ChartPoint(label="a", value=1)]) for i in range(2)],
        tables=[Table(title="Doc table 0", headers=["h"], rows=[["v"]])],
    )
    toc = [TocItem(label=t, title=t) for t in ("Intro", "Numbers", "Risk")]
    throttle = CountingThrottle()

    slides = await SlideContentGenerator(throttle=throttle).generate_all(toc, "", META, structured)

    assert [s.title for s in slides] == ["Intro", "Numbers", "Risk"]
    assert throttle.calls == 3
    assert slides[0].charts[-1].title == "Doc chart 0"
    assert slides[0].tables[-1].title == "Doc table 0"
    assert slides[1].charts[-1].title == "Doc chart 1"
    assert all(t.title != "Doc table 0" for t in slides[1].tables)
    assert all(not c.title.startswith("Doc chart") for c in slides[2].charts)


async def test_minimums_are_configurable(failing_llm):
    generator = SlideContentGenerator(throttle=CountingThrottle(), min_bullets=2, min_metrics=0)
    thin = TestModel(custom_output_args={"content": ["one", "two"], "metrics": []})

    with ai_generators.slide_content_agent.override(model=thin):
        slide = await generator.generate(0, TocItem(label="Numbers", title="Numbers"), "", META)

    assert slide.content == ["one", "two"]


async def test_fallback_meets_raised_minimums(failing_llm):
    generator = SlideContentGenerator(throttle=CountingThrottle(), min_bullets=10, min_metrics=6)

    slide = await generator.generate(0, TocItem(label="Risk", title="Risk"), "", META)

    assert len(slide.content) >= 10
    assert len(slide.metrics) >= 6


async def test_images_are_distributed_by_position(failing_llm):
    structured = StructuredData(images=[Image(url="data:image/png;base64,AAAA", title="Site photo")])
    toc = [TocItem(label=t, title=t) for t in ("Intro", "Numbers")]

    slides = await SlideContentGenerator(throttle=CountingThrottle()).generate_all(toc, "", META, structured)

    assert [i.title for i in slides[0].images] == ["Site photo"]
    assert slides[1].images == []

import pytest

from app.core.slide_templates import (
    MIN_BULLETS,
    MIN_METRICS,
    TEMPLATE_PROFILES,
    SlideTemplate,
    get_profile,
    select_template,
)


@pytest.mark.parametrize(
    ("title", "template"),
    [
        ("Financial Performance", SlideTemplate.FINANCIAL_ANALYSIS),
        ("Numbers", SlideTemplate.FINANCIAL_ANALYSIS),
        ("Risk Assessment", SlideTemplate.RISK_MANAGEMENT),
        ("Safety Performance", SlideTemplate.RISK_MANAGEMENT),
        ("Intro", SlideTemplate.EXECUTIVE_SUMMARY),
        ("Executive Summary", SlideTemplate.EXECUTIVE_SUMMARY),
        ("Operational Overview", SlideTemplate.OPERATIONAL_METRICS),
        ("Environmental Compliance", SlideTemplate.SUSTAINABILITY),
        ("Technology Adoption", SlideTemplate.TECHNOLOGY_INNOVATION),
        ("Human Resources", SlideTemplate.HUMAN_RESOURCES),
        ("Market Analysis", SlideTemplate.MARKET_ANALYSIS),
        ("Something else entirely", SlideTemplate.OPERATIONAL_METRICS),
    ],
)
def test_select_template(title, template):
    assert select_template(title) == template


def test_every_template_has_a_profile():
    assert set(TEMPLATE_PROFILES) == set(SlideTemplate)


@pytest.mark.parametrize("template", list(SlideTemplate))
def test_fallback_slide_is_complete(template):
    slide = get_profile(template).fallback_slide("Quarterly Review", 2)

    assert slide.title == "Quarterly Review"
    assert len(slide.content) >= MIN_BULLETS
    assert len(slide.metrics) >= MIN_METRICS
    assert slide.key_insights
    assert slide.tables and slide.charts
    for table in slide.tables:
        assert all(len(row) == len(table.headers) for row in table.rows)
    assert all(point.label for point in slide.charts[0].data)


def test_fallback_slide_is_deterministic_and_varies_by_index():
    profile = get_profile(SlideTemplate.FINANCIAL_ANALYSIS)

    assert profile.fallback_slide("Revenue", 1) == profile.fallback_slide("Revenue", 1)

    first = profile.fallback_slide("Revenue", 0)
    second = profile.fallback_slide("Revenue", 1)
    assert [m.value for m in first.metrics] != [m.value for m in second.metrics]


def test_fallback_slide_blank_title_uses_template_name():
    slide = get_profile(SlideTemplate.MARKET_ANALYSIS).fallback_slide("  ", 0)
    assert slide.title == "Market Analysis"


@pytest.mark.parametrize(
    ("title", "template"),
    [
        ("Steam Supply", SlideTemplate.OPERATIONAL_METRICS),
        ("Ecosystem Partners", SlideTemplate.OPERATIONAL_METRICS),
        ("Team Culture", SlideTemplate.HUMAN_RESOURCES),
        ("Project Teams", SlideTemplate.HUMAN_RESOURCES),
        ("Costs", SlideTemplate.FINANCIAL_ANALYSIS),
    ],
)
def test_keywords_match_whole_words_not_substrings(title, template):
    assert select_template(title) == template


def test_fallback_slide_pads_to_requested_minimums():
    slide = get_profile(SlideTemplate.EXECUTIVE_SUMMARY).fallback_slide("Outlook", 3, min_bullets=12, min_metrics=6)

    assert len(slide.content) >= 12
    assert len(slide.metrics) >= 6
    assert len(set(slide.content)) == len(slide.content)
    assert len({m.label for m in slide.metrics}) == len(slide.metrics)

"""
Deterministic HTML renderer for a ``Presentation``.

Produces a self-contained document (inline CSS, no scripts, no external
assets) with one ``<section>`` per slide.  Each section is sized as a 16:9
page so the browser's print-to-PDF yields one slide per page.
"""

from __future__ import annotations

import html as html_mod

from app.schemas.presentation import (
    AnnexureSlide,
    Chart,
    ContentSlide,
    Image,
    Metric,
    Presentation,
    Table,
    ThankYouSlide,
    TitleSlide,
    TocSlide,
)


def _e(text: str | None) -> str:
    """HTML-escape helper."""
    return html_mod.escape(text or "")


def _render_points(points: list[str], css_class: str = "slide-points") -> str:
    if not points:
        return ""
    items = "\n".join(f"<li>{_e(p)}</li>" for p in points)
    return f'<ul class="{css_class}">{items}</ul>'


def _render_metrics(metrics: list[Metric]) -> str:
    if not metrics:
        return ""
    cards = []
    for m in metrics:
        change = f'<span class="metric-change">{_e(m.change)}</span>' if m.change else ""
        target = f'<span class="metric-target">Target: {_e(m.target)}</span>' if m.target else ""
        cards.append(
            f'<div class="metric"><span class="metric-value">{_e(m.value)}</span>'
            f'<span class="metric-label">{_e(m.label)}</span>{change}{target}</div>'
        )
    return f'<div class="metrics">{"".join(cards)}</div>'


def _render_table(table: Table) -> str:
    head = "".join(f"<th>{_e(h)}</th>" for h in table.headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{_e(cell)}</td>" for cell in row) + "</tr>"
        for row in table.rows
    )
    caption = f"<caption>{_e(table.title)}</caption>" if table.title else ""
    return f'<table class="data-table">{caption}<thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'


def _render_chart(chart: Chart) -> str:
    """Charts become horizontal bars scaled to the largest value."""
    peak = max((abs(p.value) for p in chart.data), default=0) or 1
    rows = []
    for point in chart.data:
        width = round(abs(point.value) / peak * 100, 1)
        rows.append(
            f'<div class="bar-row"><span class="bar-label">{_e(point.label)}</span>'
            f'<span class="bar" style="width: {width}%"></span>'
            f'<span class="bar-value">{point.value:g}</span></div>'
        )
    return (
        f'<figure class="chart chart-{chart.type}"><figcaption>{_e(chart.title)}</figcaption>'
        f'{"".join(rows)}</figure>'
    )


def _render_image(image: Image) -> str:
    """Inline ``data:`` images only; anything else becomes a captioned box."""
    caption = f"<figcaption>{_e(image.title)}</figcaption>" if image.title else ""
    if image.url.startswith("data:image/"):
        return (
            f'<figure class="image"><img src="{_e(image.url)}" alt="{_e(image.description or image.title)}">'
            f"{caption}</figure>"
        )
    return f'<figure class="image image-placeholder"><div>[Image] {_e(image.title or image.description)}</div></figure>'


def _render_visuals(tables: list[Table], charts: list[Chart], images: list[Image] | None = None) -> str:
    parts = [_render_table(t) for t in tables] + [_render_chart(c) for c in charts]
    parts += [_render_image(i) for i in images or []]
    if not parts:
        return ""
    return f'<div class="visuals">{"".join(parts)}</div>'


def _render_title(slide: TitleSlide, index: int) -> str:
    subtitle = f'<p class="cover-subtitle">{_e(slide.subtitle)}</p>' if slide.subtitle else ""
    return f"""
    <section class="slide slide-title" data-slide="{index}">
      <h1 class="cover-title">{_e(slide.title)}</h1>
      {subtitle}
      <p class="cover-date">{_e(slide.date)}</p>
    </section>"""


def _render_toc(slide: TocSlide, index: int) -> str:
    return f"""
    <section class="slide slide-toc" data-slide="{index}">
      <h2 class="slide-headline">{_e(slide.title)}</h2>
      {_render_points(slide.items, "toc-items")}
    </section>"""


def _render_content(slide: ContentSlide, index: int) -> str:
    subtitle = f'<p class="slide-sub">{_e(slide.subtitle)}</p>' if slide.subtitle else ""
    insights = ""
    if slide.key_insights:
        insights = f'<div class="insights"><h3>Key Insights</h3>{_render_points(slide.key_insights)}</div>'
    return f"""
    <section class="slide slide-content" data-slide="{index}">
      <h2 class="slide-headline">{_e(slide.title)}</h2>
      {subtitle}
      {_render_metrics(slide.metrics)}
      {_render_points(slide.content)}
      {_render_visuals(slide.tables, slide.charts, slide.images)}
      {insights}
    </section>"""


def _render_thank_you(slide: ThankYouSlide, index: int) -> str:
    return f"""
    <section class="slide slide-thank-you" data-slide="{index}">
      <h1 class="cover-title">{_e(slide.title)}</h1>
    </section>"""


def _render_annexure(slide: AnnexureSlide, index: int) -> str:
    return f"""
    <section class="slide slide-annexure" data-slide="{index}">
      <h2 class="slide-headline">{_e(slide.title)}</h2>
      {_render_points(slide.content)}
      {_render_visuals(slide.tables, slide.charts)}
    </section>"""


def render_slide(slide, index: int) -> str:
    match slide:
        case TitleSlide():
            return _render_title(slide, index)
        case TocSlide():
            return _render_toc(slide, index)
        case ContentSlide():
            return _render_content(slide, index)
        case ThankYouSlide():
            return _render_thank_you(slide, index)
        case AnnexureSlide():
            return _render_annexure(slide, index)
    raise TypeError(f"unsupported slide type: {type(slide).__name__}")


_STYLE = """
*, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }

body {
  font-family: 'Segoe UI', Arial, sans-serif;
  background: #e5e7eb; color: #1f2937;
}

/* --- Slide system --- */
.slide {
  width: 1280px; height: 720px;
  margin: 24px auto;
  padding: 48px 64px;
  background: #fff;
  overflow: hidden;
  box-shadow: 0 4px 16px rgba(0,0,0,0.12);
  page-break-after: always;
  break-after: page;
}

/* --- Cover / thank-you --- */
.slide-title, .slide-thank-you {
  display: flex; flex-direction: column;
  align-items: center; justify-content: center;
  text-align: center;
  background: #1e3a8a; color: #fff;
}
.cover-title { font-size: 56px; font-weight: 800; letter-spacing: -0.02em; }
.cover-subtitle { margin-top: 16px; font-size: 24px; font-weight: 300; opacity: 0.85; }
.cover-date { margin-top: 32px; font-size: 16px; opacity: 0.7; }

/* --- Standard slides --- */
.slide-headline {
  font-size: 34px; font-weight: 700;
  color: #1e3a8a;
  border-bottom: 3px solid #1e3a8a;
  padding-bottom: 8px; margin-bottom: 16px;
}
.slide-sub { font-size: 18px; color: #6b7280; margin-bottom: 12px; }
.slide-points, .toc-items { padding-left: 20px; font-size: 15px; line-height: 1.5; }
.toc-items { columns: 2; font-size: 18px; list-style: none; padding-left: 0; }

/* --- Metrics --- */
.metrics { display: flex; gap: 12px; margin-bottom: 14px; }
.metric {
  flex: 1; padding: 10px;
  background: #eff6ff; border-radius: 8px;
  display: flex; flex-direction: column; align-items: center;
}
.metric-value { font-size: 22px; font-weight: 800; color: #1e3a8a; }
.metric-label { font-size: 12px; text-transform: uppercase; color: #6b7280; }
.metric-change { font-size: 12px; color: #059669; }
.metric-target { font-size: 11px; color: #9ca3af; }

/* --- Tables, charts and images --- */
.visuals { display: flex; gap: 24px; margin-top: 14px; }
.data-table { border-collapse: collapse; font-size: 12px; flex: 1; }
.data-table caption { font-weight: 700; text-align: left; margin-bottom: 4px; }
.data-table th { background: #1e3a8a; color: #fff; padding: 4px 8px; text-align: left; }
.data-table td { border-bottom: 1px solid #e5e7eb; padding: 4px 8px; }
.chart { flex: 1; font-size: 12px; }
.chart figcaption { font-weight: 700; margin-bottom: 6px; }
.bar-row { display: flex; align-items: center; gap: 8px; margin-bottom: 4px; }
.bar-label { width: 90px; }
.bar { display: inline-block; height: 12px; background: #3b82f6; }
.bar-value { color: #6b7280; }
.image { flex: 1; font-size: 12px; }
.image img { max-width: 100%; max-height: 320px; object-fit: contain; }
.image figcaption { font-weight: 700; margin-top: 4px; }
.image-placeholder div { background: #f0f1f5; color: #6b7280; padding: 48px 12px; text-align: center; }

/* --- Insights --- */
.insights { margin-top: 14px; padding: 10px 14px; background: #fefce8; border-left: 4px solid #eab308; }
.insights h3 { font-size: 14px; margin-bottom: 4px; }

@page { size: 1280px 720px; margin: 0; }
@media print {
  body { background: #fff; }
  .slide { margin: 0; box-shadow: none; }
}
"""


def render_presentation_html(presentation: Presentation) -> str:
    """Render a Presentation into a self-contained HTML document."""

    slides_html = [render_slide(slide, i) for i, slide in enumerate(presentation.slides)]

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{_e(presentation.title)}</title>
<style>{_STYLE}</style>
</head>
<body>
{"".join(slides_html)}
</body>
</html>"""

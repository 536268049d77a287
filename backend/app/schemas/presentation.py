"""
Pydantic models for the slide-deck document.

A ``Presentation`` is what the generation pipeline produces and what the
exporters in ``app.core.pptx_export`` and ``app.core.deck_template`` consume.
Slides form a tagged union on ``type``.  Field names go over the wire in
camelCase (``keyInsights``), Python code uses snake_case.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Visual elements
# ---------------------------------------------------------------------------

class ChartPoint(CamelModel):
    label: str
    value: float
    target: float | None = None

    @field_validator("label", mode="before")
    @classmethod
    def _label_text(cls, v: Any) -> str:
        return _to_text(v)


class Chart(CamelModel):
    type: Literal["bar", "line", "pie"] = "bar"
    title: str
    data: list[ChartPoint] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, v: Any) -> str:
        v = str(v or "bar").lower()
        return v if v in ("bar", "line", "pie") else "bar"


class Table(CamelModel):
    """Tabular data.  Every row has exactly ``len(headers)`` cells.

    Rows are repaired on construction: short rows are padded with empty
    cells, long rows are truncated, rows left entirely empty are dropped.
    """

    title: str = ""
    headers: list[str]
    rows: list[list[str]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _repair_rows(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_rows = data.get("rows") or []
        rows: list[list[str]] = []
        for row in raw_rows:
            if isinstance(row, dict):
                row = list(row.values())
            elif not isinstance(row, (list, tuple)):
                row = [row]
            rows.append([_to_text(cell) for cell in row])

        headers = [_to_text(h) for h in (data.get("headers") or [])]
        if not headers and rows:
            headers = [f"Column {i + 1}" for i in range(max(len(r) for r in rows))]

        width = len(headers)
        repaired = []
        for row in rows:
            row = (row + [""] * width)[:width]
            if any(cell.strip() for cell in row):
                repaired.append(row)

        return {**data, "headers": headers, "rows": repaired}


class Metric(CamelModel):
    label: str
    value: str
    change: str = ""
    target: str | None = None
    benchmark: str | None = None

    @field_validator("label", "value", "change", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _to_text(v)

    @field_validator("target", "benchmark", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        return None if v is None else _to_text(v)


class Image(CamelModel):
    """A picture for a content slide.

    Uploaded images travel inline as a ``data:`` URI; ``url`` is empty when the
    upload was too large to inline, and exporters then draw a captioned
    placeholder.
    """

    url: str = ""
    title: str = ""
    description: str = ""


class StructuredData(CamelModel):
    charts: list[Chart] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    metrics: list[Metric] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)


class TocItem(CamelModel):
    """One table-of-contents line: the raw ``label`` and its bare ``title``."""

    label: str
    title: str


# ---------------------------------------------------------------------------
# Slides
# ---------------------------------------------------------------------------

class TitleSlide(CamelModel):
    type: Literal["title"] = "title"
    title: str
    date: str
    subtitle: str | None = None


class TocSlide(CamelModel):
    type: Literal["table-of-contents"] = "table-of-contents"
    title: str = "Table of Content"
    items: list[str]


class ContentSlide(CamelModel):
    type: Literal["content"] = "content"
    title: str
    subtitle: str | None = None
    content: list[str]
    metrics: list[Metric] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    charts: list[Chart] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)


class ThankYouSlide(CamelModel):
    type: Literal["thank-you"] = "thank-you"
    title: str = "THANK YOU"


class AnnexureSlide(CamelModel):
    type: Literal["annexure"] = "annexure"
    title: str
    content: list[str] = Field(default_factory=list)
    tables: list[Table] = Field(default_factory=list)
    charts: list[Chart] = Field(default_factory=list)


Slide = Annotated[
    Union[TitleSlide, TocSlide, ContentSlide, ThankYouSlide, AnnexureSlide],
    Field(discriminator="type"),
]


class Presentation(CamelModel):
    """A complete deck.

    Structure: title slide first, table of contents second when present,
    exactly one thank-you slide, and only annexure slides after it.
    """

    title: str
    date: str
    slides: list[Slide]

    @model_validator(mode="after")
    def _check_structure(self) -> "Presentation":
        if not self.slides or self.slides[0].type != "title":
            raise ValueError("first slide must be a title slide")

        for i, slide in enumerate(self.slides):
            if slide.type == "table-of-contents" and i != 1:
                raise ValueError("table of contents must be the second slide")

        thank_you = [i for i, s in enumerate(self.slides) if s.type == "thank-you"]
        if len(thank_you) != 1:
            raise ValueError("deck must contain exactly one thank-you slide")
        trailing = self.slides[thank_you[0] + 1:]
        if any(s.type != "annexure" for s in trailing):
            raise ValueError("only annexure slides may follow the thank-you slide")
        return self

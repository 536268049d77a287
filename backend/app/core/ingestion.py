"""
Best-effort text and data extraction from uploaded documents.

Nothing here parses PDF/XLSX/DOCX for real: binary formats go through a
printable-run heuristic and the result is only a hint for the LLM.  JSON and
CSV are read properly because the standard library can.  Images are not
read at all; they are passed through inline for the exporters.

``extract`` is total: whatever bytes come in, an ``ExtractedDocument`` comes
out.
"""

from __future__ import annotations

import asyncio
import base64
import csv
import io
import json
import logging
import mimetypes
import re
from enum import Enum
from pathlib import PurePath
from typing import Any, Iterable

from app.schemas.ingestion import ExtractedDocument, UploadedDocument
from app.schemas.presentation import Chart, ChartPoint, Image, Metric, StructuredData, Table

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 50_000
MAX_CHARTS = 10
MAX_TABLES = 10
MAX_CSV_ROWS = 20
MAX_INLINE_IMAGE_BYTES = 2 * 1024 * 1024

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tif", ".tiff")


class DocumentKind(str, Enum):
    json = "json"
    image = "image"
    pdf = "pdf"
    spreadsheet = "spreadsheet"
    word = "word"
    fallback = "fallback"


_KIND_LABELS = {
    DocumentKind.json: "JSON",
    DocumentKind.image: "Image",
    DocumentKind.pdf: "PDF",
    DocumentKind.spreadsheet: "Spreadsheet",
    DocumentKind.word: "Word",
    DocumentKind.fallback: "Uploaded",
}

# Minimum printable-run length kept by the heuristic, per kind.
_MIN_RUN = {
    DocumentKind.pdf: 10,
    DocumentKind.word: 10,
    DocumentKind.spreadsheet: 4,
    DocumentKind.fallback: 5,
}

_PRINTABLE = r"[A-Za-z0-9\s.,;:!?()%\-]"


def detect_kind(name: str, mime_type: str) -> DocumentKind:
    """Pick the extraction path from the declared MIME type, then the extension."""
    mime = (mime_type or "").lower()
    lower = (name or "").lower()

    if mime.startswith("image/") or lower.endswith(_IMAGE_EXTENSIONS):
        return DocumentKind.image
    if mime == "application/json" or lower.endswith(".json"):
        return DocumentKind.json
    if mime == "application/pdf" or lower.endswith(".pdf"):
        return DocumentKind.pdf
    if (
        "sheet" in mime
        or "excel" in mime
        or mime == "text/csv"
        or lower.endswith((".xlsx", ".xls", ".csv"))
    ):
        return DocumentKind.spreadsheet
    if "document" in mime or "msword" in mime or lower.endswith((".docx", ".doc")):
        return DocumentKind.word
    return DocumentKind.fallback


def default_text(name: str, kind: DocumentKind) -> str:
    return f"{_KIND_LABELS[kind]} document: {name} - no readable text could be extracted"


def printable_runs(raw: bytes, min_run: int) -> str:
    """Decode as UTF-8 (lossy) and keep only runs of printable characters."""
    decoded = raw.decode("utf-8", errors="replace")
    runs = re.findall(f"{_PRINTABLE}{{{min_run},}}", decoded)
    text = re.sub(r"\s+", " ", " ".join(runs)).strip()
    return text[:MAX_TEXT_CHARS]


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_knowledge_base_shape(payload: Any) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("slides"), list)


def flatten_knowledge_base(payload: dict) -> str:
    """Render a ``{"slides": [...]}`` payload as ``SLIDE n: title`` blocks."""
    lines: list[str] = []
    for number, slide in enumerate(payload.get("slides") or [], start=1):
        if not isinstance(slide, dict):
            lines.append(f"SLIDE {number}: {slide}")
            continue
        lines.append(f"SLIDE {number}: {slide.get('title', '')}".rstrip())

        content = slide.get("content") or []
        if isinstance(content, str):
            content = [content]
        for item in content:
            lines.extend(_flatten_content_item(item))

        for bullet in slide.get("bullets") or slide.get("bulletPoints") or []:
            lines.append(f"- {bullet}")
        for table in slide.get("tables") or []:
            lines.extend(_flatten_table(table))
        lines.append("")
    return "\n".join(lines).strip()


def _flatten_content_item(item: Any) -> list[str]:
    if isinstance(item, str):
        return [f"- {item}"]
    if not isinstance(item, dict):
        return [f"- {item}"]

    kind = item.get("type")
    if kind == "table" or ("headers" in item and "rows" in item):
        return _flatten_table(item)
    if isinstance(item.get("items"), list):
        return [f"- {entry}" for entry in item["items"]]
    text = item.get("text") or item.get("content") or item.get("value")
    return [f"- {text}"] if text else []


def _flatten_table(table: Any) -> list[str]:
    if not isinstance(table, dict):
        return []
    lines = []
    if table.get("title"):
        lines.append(f"Table: {table['title']}")
    headers = table.get("headers") or []
    if headers:
        lines.append("Table: " + " | ".join(str(h) for h in headers))
    for row in table.get("rows") or []:
        if isinstance(row, (list, tuple)):
            lines.append("  " + " | ".join(str(c) for c in row))
    return lines


def mine_structured_data(payload: Any) -> StructuredData:
    """Walk a JSON document and synthesize charts, tables and metrics.

    - list of numbers       -> bar chart labelled ``Item n``
    - object of numbers     -> bar chart labelled by field name
    - list of objects       -> table, headers are the union of field names
    - top-level numbers     -> metrics
    """
    charts: list[Chart] = []
    tables: list[Table] = []
    metrics: list[Metric] = []

    if isinstance(payload, dict):
        for key, value in payload.items():
            if _is_number(value):
                metrics.append(Metric(label=str(key), value=value, change=""))

    def visit(node: Any, name: str) -> None:
        if len(charts) >= MAX_CHARTS and len(tables) >= MAX_TABLES:
            return
        if isinstance(node, list):
            if len(node) >= 2 and all(_is_number(v) for v in node):
                if len(charts) < MAX_CHARTS:
                    charts.append(Chart(
                        type="bar",
                        title=name,
                        data=[ChartPoint(label=f"Item {i + 1}", value=v) for i, v in enumerate(node)],
                    ))
                return
            objects = [v for v in node if isinstance(v, dict)]
            if objects and len(objects) == len(node):
                headers: list[str] = []
                for obj in objects:
                    for key in obj:
                        if key not in headers:
                            headers.append(key)
                if len(tables) < MAX_TABLES:
                    tables.append(Table(
                        title=name,
                        headers=headers,
                        rows=[[_cell(obj.get(h)) for h in headers] for obj in objects],
                    ))
            for i, child in enumerate(node):
                visit(child, f"{name} {i + 1}")
        elif isinstance(node, dict):
            numeric = {k: v for k, v in node.items() if _is_number(v)}
            if len(numeric) >= 2 and len(numeric) == len(node) and len(charts) < MAX_CHARTS:
                charts.append(Chart(
                    type="bar",
                    title=name,
                    data=[ChartPoint(label=str(k), value=v) for k, v in numeric.items()],
                ))
                return
            for key, child in node.items():
                visit(child, str(key))

    visit(payload, "Data")
    return StructuredData(charts=charts, tables=tables, metrics=metrics)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _extract_json(file: UploadedDocument) -> ExtractedDocument | None:
    try:
        payload = json.loads(file.raw_bytes.decode("utf-8-sig"))
    except (UnicodeDecodeError, ValueError):
        logger.info("File %s is not valid JSON, using text heuristic", file.name)
        return None

    if is_knowledge_base_shape(payload):
        text = flatten_knowledge_base(payload)
        return ExtractedDocument(
            name=file.name,
            mime_type=file.mime_type,
            text=text or default_text(file.name, DocumentKind.json),
            structured_data=None,
        )

    structured = mine_structured_data(payload)
    has_data = structured.charts or structured.tables or structured.metrics
    return ExtractedDocument(
        name=file.name,
        mime_type=file.mime_type,
        text=json.dumps(payload, indent=2, ensure_ascii=False)[:MAX_TEXT_CHARS],
        structured_data=structured if has_data else None,
    )


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------

def _csv_structured_data(name: str, raw: bytes) -> StructuredData | None:
    reader = csv.reader(io.StringIO(raw.decode("utf-8-sig", errors="replace")))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        return None

    headers, body = rows[0], rows[1:MAX_CSV_ROWS + 1]
    table = Table(title=name, headers=headers, rows=body)

    charts = []
    for col in range(1, len(table.headers)):
        values = [_parse_number(row[col]) for row in table.rows]
        if table.rows and all(v is not None for v in values):
            charts.append(Chart(
                type="bar",
                title=f"{table.headers[col]} by {table.headers[0]}",
                data=[ChartPoint(label=row[0], value=v) for row, v in zip(table.rows, values)],
            ))
            break
    return StructuredData(charts=charts, tables=[table])


def _parse_number(cell: str) -> float | None:
    cleaned = cell.strip().replace(",", "").rstrip("%")
    try:
        return float(cleaned)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def image_data_uri(raw: bytes, name: str, mime_type: str = "") -> str:
    """Inline the upload as a ``data:`` URI, or ``""`` when it is too large."""
    if len(raw) > MAX_INLINE_IMAGE_BYTES:
        return ""
    mime = mime_type if (mime_type or "").startswith("image/") else mimetypes.guess_type(name)[0]
    encoded = base64.b64encode(raw).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{encoded}"


def _extract_image(file: UploadedDocument) -> ExtractedDocument:
    url = image_data_uri(file.raw_bytes, file.name, file.mime_type)
    description = f"Uploaded image {file.name}"
    if not url:
        logger.info("Image %s exceeds %d bytes, keeping a placeholder only", file.name, MAX_INLINE_IMAGE_BYTES)
        description += " (too large to embed)"
    image = Image(url=url, title=PurePath(file.name).stem or file.name, description=description)
    return ExtractedDocument(
        name=file.name,
        mime_type=file.mime_type,
        text=f"Image: {file.name}",
        structured_data=StructuredData(images=[image]),
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _extract(file: UploadedDocument, kind: DocumentKind) -> ExtractedDocument:
    if kind == DocumentKind.image:
        return _extract_image(file)
    if kind == DocumentKind.json:
        extracted = _extract_json(file)
        if extracted is not None:
            return extracted
        kind = DocumentKind.fallback

    text = printable_runs(file.raw_bytes, _MIN_RUN[kind])
    structured = None
    is_csv = file.mime_type == "text/csv" or file.name.lower().endswith(".csv")
    if kind == DocumentKind.spreadsheet and is_csv:
        structured = _csv_structured_data(file.name, file.raw_bytes)

    return ExtractedDocument(
        name=file.name,
        mime_type=file.mime_type,
        text=text or default_text(file.name, kind),
        structured_data=structured,
    )


def extract(file: UploadedDocument) -> ExtractedDocument:
    """Extract text (and, where possible, structured data) from one upload.

    Never raises: on any failure the result carries a default text naming
    the file and ``structured_data=None``.
    """
    kind = detect_kind(file.name, file.mime_type)
    try:
        return _extract(file, kind)
    except Exception:
        logger.warning("Extraction failed for %s, using default text", file.name, exc_info=True)
        return ExtractedDocument(
            name=file.name,
            mime_type=file.mime_type,
            text=default_text(file.name, kind),
            structured_data=None,
        )


async def extract_all(files: Iterable[UploadedDocument]) -> list[ExtractedDocument]:
    """Extract every upload concurrently; output order matches input order."""
    files = list(files)
    if not files:
        return []
    results = await asyncio.gather(*(asyncio.to_thread(extract, f) for f in files))
    logger.info("Extracted content from %d documents", len(results))
    return list(results)

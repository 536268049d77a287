from uuid import uuid4

from app.core import knowledge_base
from app.core.knowledge_base import (
    ingest_document,
    parse_knowledge_content,
    search_knowledge_base,
    split_large_content,
)
from app.models.knowledge_base import KnowledgeBaseChunk, KnowledgeBaseDocument


def test_short_content_is_a_single_chunk():
    assert split_large_content("hello") == ["hello"]


def test_long_content_is_packed_by_line():
    lines = ["a" * 600, "b" * 300, "c" * 600]
    chunks = split_large_content("\n".join(lines), max_length=1000)

    assert chunks == [lines[0] + "\n" + lines[1], lines[2]]
    assert all(len(c) <= 1000 for c in chunks)


def test_presentation_content_splits_on_slide_markers():
    content = "SLIDE 1: Introduction to the plan\nSLIDE 2 - Revenue grew strongly\nslide 3 — Close"
    chunks = parse_knowledge_content(content, "presentation")

    assert [c.content for c in chunks] == [
        "Introduction to the plan",
        "Revenue grew strongly",
        "Close",
    ]
    assert chunks[1].metadata == {"slideNumber": 2, "chunkIndex": 0, "type": "slide"}


def test_document_content_splits_on_blank_lines_and_drops_short_sections():
    long_a = "Production volumes increased across all three plants during the year."
    long_b = "Safety training hours doubled while recordable incidents fell sharply."
    chunks = parse_knowledge_content(f"{long_a}\n\nToo short\n\n\n{long_b}", "report")

    assert [c.content for c in chunks] == [long_a, long_b]
    assert chunks[1].metadata == {"sectionIndex": 2, "chunkIndex": 0, "type": "section"}


async def test_ingest_embeds_in_batches(fake_db, monkeypatch):
    calls = []

    async def fake_embeddings(texts):
        calls.append(len(texts))
        return [[0.1, 0.2] for _ in texts]

    monkeypatch.setattr(knowledge_base, "generate_embeddings", fake_embeddings)
    content = "\n".join(f"SLIDE {i}: Topic number {i}" for i in range(1, 26))

    document_id, processed = await ingest_document(fake_db, "Deck", content, "presentation")

    assert processed == 25
    assert calls == [10, 10, 5]
    document, *chunks = fake_db.added
    assert isinstance(document, KnowledgeBaseDocument)
    assert document.id == document_id
    assert all(isinstance(c, KnowledgeBaseChunk) and c.document_id == document_id for c in chunks)
    assert [c.chunk_index for c in chunks] == list(range(25))
    assert fake_db.flushes == 4


async def test_ingest_with_no_chunks_stores_document_only(fake_db, monkeypatch):
    async def fake_embeddings(texts):
        raise AssertionError("nothing to embed")

    monkeypatch.setattr(knowledge_base, "generate_embeddings", fake_embeddings)

    _, processed = await ingest_document(fake_db, "Empty", "tiny", "document")

    assert processed == 0
    assert len(fake_db.added) == 1


async def test_search_calls_sql_function(fake_db, monkeypatch):
    async def fake_embedding(text):
        return [0.5, 0.25]

    monkeypatch.setattr(knowledge_base, "generate_embedding", fake_embedding)
    row = {
        "id": uuid4(),
        "document_id": uuid4(),
        "document_title": "Annual Report",
        "content": "Revenue grew 8%",
        "metadata": {"type": "section"},
        "similarity": 0.91,
    }
    fake_db.rows = [row]

    results = await search_knowledge_base(fake_db, "revenue", match_threshold=0.6, match_count=3)

    assert len(results) == 1
    assert results[0].document_title == "Annual Report"
    assert results[0].similarity == 0.91
    statement, params = fake_db.executed[0]
    assert "search_knowledge_base(" in statement
    assert params == {"query_embedding": "[0.5,0.25]", "match_threshold": 0.6, "match_count": 3}

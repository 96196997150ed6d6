from __future__ import annotations

import asyncio

import pytest

from courier.rag import DocumentIndex, VectorDocument, VectorStore, make_splitter

TOPICS = ("vacation", "expenses", "security")


class KeywordEmbeddings:
    """Embeds text as keyword counts, so similarity is predictable."""

    def __init__(self):
        self.batches = []

    async def generate(self, text):
        return self._embed(text)

    async def generate_batch(self, texts):
        self.batches.append(list(texts))
        return [self._embed(text) for text in texts]

    def _embed(self, text):
        lowered = text.lower()
        return [float(lowered.count(topic)) for topic in TOPICS] + [0.01]


def _index(tmp_path, **kwargs):
    embeddings = KeywordEmbeddings()
    store = VectorStore(tmp_path / "store")
    return DocumentIndex(embeddings, store, **kwargs), embeddings


def _paragraph(topic, n):
    return f"Section {n} about {topic}. " + " ".join(f"{topic} detail {i}." for i in range(10))


def test_splitter_respects_size_and_overlap():
    words = " ".join(f"word{i:03d}" for i in range(300))
    chunks = make_splitter(chunk_size=500, chunk_overlap=100).split_text(words)

    assert len(chunks) > 1
    assert all(len(chunk) <= 500 for chunk in chunks)
    for previous, current in zip(chunks, chunks[1:]):
        first_word = current.split()[0]
        assert first_word in previous


def test_splitter_prefers_paragraph_boundaries():
    text = "First paragraph.\n\nSecond paragraph."

    chunks = make_splitter(chunk_size=20, chunk_overlap=0).split_text(text)

    assert chunks == ["First paragraph.", "Second paragraph."]


def test_splitter_keeps_short_text_whole():
    assert make_splitter().split_text("short note") == ["short note"]
    assert make_splitter().split_text("") == []


def test_splitter_rejects_overlap_larger_than_chunk():
    with pytest.raises(ValueError):
        make_splitter(chunk_size=100, chunk_overlap=200)


def test_search_on_empty_index_returns_empty_string(tmp_path):
    index, embeddings = _index(tmp_path)

    assert asyncio.run(index.search_docs("anything")) == ""


def test_load_and_search_returns_top_three(tmp_path):
    doc = tmp_path / "handbook.txt"
    doc.write_text("\n\n".join([
        _paragraph("vacation", 1),
        _paragraph("expenses", 2),
        _paragraph("security", 3),
        _paragraph("vacation", 4),
        _paragraph("expenses", 5),
    ]), encoding="utf-8")
    index, embeddings = _index(tmp_path, splitter=make_splitter(200, 0))

    count = asyncio.run(index.load_document(doc))
    result = asyncio.run(index.search_docs("how much vacation do I get?"))

    assert count == len(index.vectorstore)
    assert count >= 5
    assert len(embeddings.batches) == 1

    chunks = result.split("\n\n")
    assert len(chunks) == 3
    assert all("vacation" in chunk for chunk in chunks[:2])


def test_reloading_a_file_replaces_its_chunks(tmp_path):
    doc = tmp_path / "notes.txt"
    doc.write_text("\n\n".join(_paragraph("security", n) for n in range(4)), encoding="utf-8")
    other = tmp_path / "other.txt"
    other.write_text("vacation rules", encoding="utf-8")
    index, _ = _index(tmp_path, splitter=make_splitter(200, 0))

    assert asyncio.run(index.load_document(doc)) > 1
    asyncio.run(index.load_document(other))
    doc.write_text("security policy v2", encoding="utf-8")
    asyncio.run(index.load_document(doc))

    assert len(index.vectorstore) == 2
    assert asyncio.run(index.search_docs("security")).split("\n\n")[0] == "security policy v2"
    contents = [hit.content for hit in index.vectorstore.search([1.0, 1.0, 1.0, 1.0], top_k=10)]
    assert sorted(contents) == ["security policy v2", "vacation rules"]

    reopened = VectorStore(tmp_path / "store")
    assert len(reopened) == 2


def test_emptied_file_drops_its_chunks(tmp_path):
    doc = tmp_path / "notes.txt"
    doc.write_text("security policy v1", encoding="utf-8")
    index, _ = _index(tmp_path)

    asyncio.run(index.load_document(doc))
    doc.write_text("", encoding="utf-8")

    assert asyncio.run(index.load_document(doc)) == 0
    assert len(index.vectorstore) == 0
    assert asyncio.run(index.search_docs("security")) == ""
    assert len(VectorStore(tmp_path / "store")) == 0


def test_remove_source_keeps_other_files(tmp_path):
    store = VectorStore(tmp_path)
    store.upsert([
        VectorDocument(id="a#0", content="alpha", embedding=[1.0, 0.0], metadata={"source": "a"}),
        VectorDocument(id="a#1", content="alpha two", embedding=[1.0, 0.1], metadata={"source": "a"}),
        VectorDocument(id="b#0", content="beta", embedding=[0.0, 1.0], metadata={"source": "b"}),
    ])

    assert store.remove_source("a") == 2
    assert store.remove_source("missing") == 0

    hits = store.search([1.0, 0.0], top_k=5)
    assert [hit.content for hit in hits] == ["beta"]
    store.upsert([VectorDocument(id="c#0", content="gamma", embedding=[1.0, 0.0])])
    assert [hit.content for hit in store.search([1.0, 0.0], top_k=1)] == ["gamma"]


def test_store_persists_between_instances(tmp_path):
    store = VectorStore(tmp_path)
    store.upsert([
        VectorDocument(id="a#0", content="alpha", embedding=[1.0, 0.0]),
        VectorDocument(id="b#0", content="beta", embedding=[0.0, 1.0]),
    ])

    reopened = VectorStore(tmp_path)
    hits = reopened.search([0.0, 2.0], top_k=1)

    assert len(reopened) == 2
    assert [hit.content for hit in hits] == ["beta"]
    assert hits[0].score == pytest.approx(1.0)


def test_missing_file_raises(tmp_path):
    index, _ = _index(tmp_path)

    with pytest.raises(OSError):
        asyncio.run(index.load_document(tmp_path / "missing.txt"))

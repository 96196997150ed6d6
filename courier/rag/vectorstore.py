"""
Vector Store
============

A small file-backed vector index with cosine-similarity search.

Data lives in two files under the store directory:
- documents.json: chunk ids, text and metadata, in row order
- embeddings.npy: the embedding matrix, one row per document

The whole index is held in memory; search is a single matrix-vector
product, which is plenty for a few thousand chunks.

Cosine Similarity:
    cos(A, B) = (A · B) / (||A|| * ||B||)
    1 = same direction (most similar), 0 = unrelated
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from courier.utils.logger import Logger

logger = Logger("VectorStore")


@dataclass
class VectorDocument:
    """
    A chunk stored in the vector store.

    Attributes:
        id: Unique identifier; upserting the same id replaces the chunk
        content: The chunk text
        embedding: The chunk's vector
        metadata: Extra data (source path, chunk index)
        score: Similarity to the query (set by search)
    """
    id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "content": self.content, "metadata": self.metadata}


class VectorStore:
    """
    File-backed vector store.

    Example:
        store = VectorStore(Path("data/vectorstore"))
        store.upsert([VectorDocument(id="a#0", content="...", embedding=[...])])
        hits = store.search(query_vector, top_k=3)
    """

    def __init__(self, storage_path: Path):
        self.storage_path = storage_path
        self.documents_file = storage_path / "documents.json"
        self.embeddings_file = storage_path / "embeddings.npy"

        self._documents: list[VectorDocument] = []
        self._id_to_index: dict[str, int] = {}
        self._embeddings: np.ndarray | None = None

        storage_path.mkdir(parents=True, exist_ok=True)
        self._load()

        logger.info(f"Vector store initialized with {len(self._documents)} documents")

    def _load(self) -> None:
        if not self.documents_file.exists() or not self.embeddings_file.exists():
            return

        with open(self.documents_file, encoding="utf-8") as f:
            docs_data = json.load(f)
        embeddings = np.load(self.embeddings_file)

        if len(docs_data) != len(embeddings):
            logger.warning("Vector store files are out of sync; starting empty")
            return

        for row, data in zip(embeddings, docs_data):
            self._documents.append(VectorDocument(
                id=data["id"],
                content=data["content"],
                embedding=row.tolist(),
                metadata=data.get("metadata", {}),
            ))
        self._id_to_index = {doc.id: i for i, doc in enumerate(self._documents)}
        self._embeddings = embeddings

    def _save(self) -> None:
        with open(self.documents_file, "w", encoding="utf-8") as f:
            json.dump([doc.to_dict() for doc in self._documents], f)
        if self._embeddings is not None:
            np.save(self.embeddings_file, self._embeddings)

    def upsert(self, documents: list[VectorDocument]) -> None:
        """Add documents, replacing any with the same id, then persist."""
        for doc in documents:
            index = self._id_to_index.get(doc.id)
            if index is None:
                self._id_to_index[doc.id] = len(self._documents)
                self._documents.append(doc)
            else:
                self._documents[index] = doc

        if self._documents:
            self._embeddings = np.array([doc.embedding for doc in self._documents], dtype=float)
        self._save()
        logger.debug(f"Upserted {len(documents)} documents")

    def remove_source(self, source: str) -> int:
        """
        Drop every document loaded from `source`, then persist.

        Returns:
            Number of documents removed
        """
        kept = [doc for doc in self._documents if doc.metadata.get("source") != source]
        removed = len(self._documents) - len(kept)
        if not removed:
            return 0

        self._documents = kept
        self._id_to_index = {doc.id: i for i, doc in enumerate(kept)}
        self._embeddings = np.array([doc.embedding for doc in kept], dtype=float) if kept else None
        self._save()
        if not kept and self.embeddings_file.exists():
            self.embeddings_file.unlink()
        return removed

    def search(self, query_vector: list[float], top_k: int = 3) -> list[VectorDocument]:
        """
        Return the top_k most similar documents, best first.

        An empty store returns an empty list.
        """
        if self._embeddings is None or not self._documents:
            return []

        query = np.array(query_vector, dtype=float)
        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return []

        doc_norms = np.linalg.norm(self._embeddings, axis=1)
        doc_norms = np.where(doc_norms == 0, 1, doc_norms)
        similarities = (self._embeddings @ query) / (doc_norms * query_norm)

        order = np.argsort(-similarities, kind="stable")[:top_k]
        results = []
        for i in order:
            doc = self._documents[int(i)]
            results.append(VectorDocument(
                id=doc.id,
                content=doc.content,
                embedding=doc.embedding,
                metadata=doc.metadata,
                score=float(similarities[int(i)]),
            ))
        return results

    def clear(self) -> None:
        self._documents.clear()
        self._id_to_index.clear()
        self._embeddings = None
        for path in (self.documents_file, self.embeddings_file):
            if path.exists():
                path.unlink()
        logger.info("Vector store cleared")

    def __len__(self) -> int:
        return len(self._documents)

"""
Embedding Generation
====================

Turns document chunks and search queries into vectors with the OpenAI
embeddings API. Texts with similar meanings get nearby vectors, which is
what the vector store searches on.

Results are cached in memory by content hash, so re-loading an unchanged
document or repeating a query does not call the API again.
"""

import hashlib
from typing import Sequence

from openai import AsyncOpenAI

from courier.utils.logger import Logger

logger = Logger("Embeddings")

# The embeddings endpoint accepts at most this many inputs per request
MAX_BATCH_SIZE = 2048


class EmbeddingGenerator:
    """
    Generates text embeddings.

    Example:
        generator = EmbeddingGenerator(api_key="sk-...")
        vectors = await generator.generate_batch(["first chunk", "second chunk"])
        query_vector = await generator.generate("where is the handbook?")
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        client: AsyncOpenAI | None = None
    ):
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self._cache: dict[str, list[float]] = {}

        logger.info(f"Embedding generator initialized with model: {model}")

    def _hash_text(self, text: str) -> str:
        return hashlib.sha256(text.encode()).hexdigest()

    async def generate(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.generate_batch([text])
        return vectors[0]

    async def generate_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed many texts, calling the API only for uncached ones.

        Returns:
            One vector per input, in input order
        """
        if not texts:
            return []

        keys = [self._hash_text(text) for text in texts]
        missing: dict[str, str] = {}
        for key, text in zip(keys, texts):
            if key not in self._cache:
                missing[key] = text

        if missing:
            pending = list(missing.items())
            logger.debug(f"Generating {len(pending)} embeddings ({len(texts) - len(pending)} cached)")

            for start in range(0, len(pending), MAX_BATCH_SIZE):
                batch = pending[start:start + MAX_BATCH_SIZE]
                response = await self.client.embeddings.create(
                    model=self.model,
                    input=[text for _, text in batch],
                )
                for (key, _), item in zip(batch, response.data):
                    self._cache[key] = item.embedding

        return [self._cache[key] for key in keys]

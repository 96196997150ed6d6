"""
Document Search
===============

A side channel for searching local text documents, separate from the agent
loop.

1. load_document() splits a file into overlapping chunks, embeds them and
   stores them in the vector store
2. search_docs() embeds a query and returns the most similar chunks as text

Components:
- indexer.py: Chunking (LangChain recursive splitter) and file loading
- embeddings.py: OpenAI embeddings with caching
- vectorstore.py: File-backed cosine-similarity index
"""

from pathlib import Path

from langchain_text_splitters import RecursiveCharacterTextSplitter

from courier.rag.embeddings import EmbeddingGenerator
from courier.rag.indexer import DocumentIndexer, make_splitter
from courier.rag.vectorstore import VectorDocument, VectorStore
from courier.utils.config import Config, get_config
from courier.utils.logger import Logger

logger = Logger("RAG")


class DocumentIndex:
    """
    Main interface for document loading and search.

    Example:
        index = DocumentIndex.from_config(get_config())

        await index.load_document("docs/handbook.txt")
        context = await index.search_docs("How many vacation days do I get?")
    """

    def __init__(
        self,
        embeddings: EmbeddingGenerator,
        vectorstore: VectorStore,
        splitter: RecursiveCharacterTextSplitter | None = None,
        top_k: int = 3
    ):
        self.embeddings = embeddings
        self.vectorstore = vectorstore
        self.splitter = splitter or make_splitter()
        self.top_k = top_k
        self.indexer = DocumentIndexer(self.splitter, embeddings, vectorstore)

    @classmethod
    def from_config(cls, config: Config | None = None) -> "DocumentIndex":
        config = config or get_config()
        return cls(
            embeddings=EmbeddingGenerator(
                api_key=config.openai.api_key,
                model=config.openai.embedding_model,
                base_url=config.openai.base_url,
            ),
            vectorstore=VectorStore(config.rag.store_directory),
            splitter=make_splitter(config.rag.chunk_size, config.rag.chunk_overlap),
            top_k=config.rag.top_k,
        )

    async def load_document(self, path: str | Path) -> int:
        """
        Chunk, embed and store a text file.

        Returns:
            Number of chunks stored
        """
        return await self.indexer.index_file(Path(path))

    async def search_docs(self, query: str) -> str:
        """
        Return the top matching chunks joined by blank lines.

        Returns an empty string when nothing has been indexed.
        """
        if len(self.vectorstore) == 0:
            logger.debug("Search on empty document index")
            return ""

        query_vector = await self.embeddings.generate(query)
        results = self.vectorstore.search(query_vector, top_k=self.top_k)

        logger.debug(f"Document search returned {len(results)} chunks")
        return "\n\n".join(doc.content for doc in results)


__all__ = [
    "DocumentIndex",
    "DocumentIndexer",
    "EmbeddingGenerator",
    "make_splitter",
    "VectorDocument",
    "VectorStore",
]

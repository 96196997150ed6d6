"""
Document Indexer
================

Loads text files into the vector store.

The indexer:
1. Reads a UTF-8 text file
2. Splits it into overlapping chunks with LangChain's recursive character
   splitter (paragraphs, then lines, then words, then characters)
3. Embeds all chunks in one batch
4. Replaces whatever the store held for that file with the new chunks

Loading the same file again therefore never leaves stale chunks behind, even
when the new version is shorter.
"""

from pathlib import Path

from langchain_text_splitters import RecursiveCharacterTextSplitter

from courier.rag.embeddings import EmbeddingGenerator
from courier.rag.vectorstore import VectorDocument, VectorStore
from courier.utils.logger import Logger

logger = Logger("Indexer")

DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 100


def make_splitter(
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP
) -> RecursiveCharacterTextSplitter:
    """Character splitter measuring chunks in characters."""
    return RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
    )


class DocumentIndexer:
    """
    Indexes text files for document search.

    Example:
        indexer = DocumentIndexer(make_splitter(), embeddings, vectorstore)
        count = await indexer.index_file(Path("docs/handbook.txt"))
        print(f"Indexed {count} chunks")
    """

    def __init__(
        self,
        splitter: RecursiveCharacterTextSplitter,
        embeddings: EmbeddingGenerator,
        vectorstore: VectorStore
    ):
        self.splitter = splitter
        self.embeddings = embeddings
        self.vectorstore = vectorstore

    async def index_file(self, path: Path) -> int:
        """
        Index one file, replacing any chunks stored for it before.

        Returns:
            Number of chunks stored

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not UTF-8 text
        """
        path = Path(path)
        logger.info(f"Indexing document: {path}")

        text = path.read_text(encoding="utf-8")
        chunks = self.splitter.split_text(text)
        source = str(path.resolve())

        # Embed before touching the store so a failed call keeps the old chunks
        vectors = await self.embeddings.generate_batch(chunks) if chunks else []

        removed = self.vectorstore.remove_source(source)
        if removed:
            logger.debug(f"Replaced {removed} old chunks from {path.name}")

        if not chunks:
            logger.debug(f"No content to index in {path}")
            return 0

        documents = [
            VectorDocument(
                id=f"{source}#{i}",
                content=chunk,
                embedding=vector,
                metadata={"source": source, "chunk": i},
            )
            for i, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]
        self.vectorstore.upsert(documents)

        logger.info(f"Indexed {len(documents)} chunks from {path.name}")
        return len(documents)

"""
Abstract base class for document chunkers.

A chunker turns one document's text into ordered, bounded pieces.
It does not embed: the embedder fills in vectors afterwards, so the
same chunker works with any embedding model as long as it is handed
that model's token counter.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping

from agent_rag.config import ChunkingConfig
from agent_rag.models.document import Chunk
from agent_rag.utils.logger import get_logger

logger = get_logger(__name__)


class BaseChunker(ABC):
    """
    Contract for chunkers.

    Every chunker receives a token counter and a ChunkingConfig so the
    caller controls max_tokens and overlap. Subclasses implement
    chunk_text(); document-level helpers are shared.
    """

    def __init__(self, token_counter: Callable[[str], int], config: ChunkingConfig):
        self.token_counter = token_counter
        self.config = config

    @abstractmethod
    def chunk_text(self, text: str) -> Iterator[tuple[str, int]]:
        """
        Split text into (chunk_text, order) pairs.

        Args:
            text: Full document text.

        Returns:
            A lazy iterator; order starts at 0 and has no gaps.
        """
        ...

    def chunk_document(self, doc_id: str, text: str) -> Iterator[Chunk]:
        """Wrap chunk_text() output into unembedded Chunks for one document."""
        for chunk_text, order in self.chunk_text(text):
            yield Chunk(doc_id=doc_id, order=order, text=chunk_text)

    def chunk_documents(self, documents: Mapping[str, str]) -> list[Chunk]:
        """
        Chunk every document, in mapping order.

        A document that produces no chunks (empty or whitespace-only
        text) is logged and skipped rather than treated as an error.
        """
        chunks: list[Chunk] = []
        for doc_id, text in documents.items():
            produced = list(self.chunk_document(doc_id, text or ""))
            if not produced:
                logger.warning(f"[CHUNKER] Document '{doc_id}' produced no chunks")
                continue
            logger.debug(f"[CHUNKER] Document '{doc_id}' -> {len(produced)} chunks")
            chunks.extend(produced)
        return chunks

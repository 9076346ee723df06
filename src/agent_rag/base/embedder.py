"""
Abstract base class for embedders.

The engine never talks to a model directly. It needs three things:
a vector for a text, a token count for a text (so the chunker can
respect token budgets), and a way to fill in embeddings for a list of
chunks. Anything that can do that plugs in here: a LangChain
Embeddings wrapper, a local ONNX model, or a stub in tests.

Errors raised by the underlying model are not caught or retried here;
retry policy belongs to the model layer.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from agent_rag.exceptions import EmbedderFailure
from agent_rag.models.document import Chunk


class BaseEmbedder(ABC):
    """
    Contract for embedders.

    Subclasses must implement embed() and token_count(). embed_many()
    defaults to calling embed() once per text; override it when the
    model supports batching.
    """

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Return the embedding of a single text."""
        ...

    @abstractmethod
    def token_count(self, text: str) -> int:
        """Return how many tokens the model sees for this text."""
        ...

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed several texts; output[i] belongs to texts[i]."""
        return [self.embed(text) for text in texts]

    def embed_in_place(self, chunks: Sequence[Chunk]) -> None:
        """
        Assign an embedding to every chunk, preserving list order.

        Raises:
            EmbedderFailure: If the model returns a different number of
                vectors than it was given texts.
        """
        if not chunks:
            return
        vectors = self.embed_many([c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise EmbedderFailure(
                f"Embedder returned {len(vectors)} vectors for {len(chunks)} chunks"
            )
        for chunk, vector in zip(chunks, vectors):
            chunk.embedding = [float(x) for x in vector]

    def close(self) -> None:
        """Release model resources. Default: nothing to release."""
        return None

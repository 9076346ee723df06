"""
In-memory vector index with exact cosine top-K search.

Every embedding is L2-normalized once, at construction, so cosine
similarity reduces to a dot product. Search is a linear scan: one
matrix-vector product over all chunks plus a bounded min-heap of size
K.

Ranking is deterministic: equal scores keep scan order, so the chunk
that appears first in the index wins a tie.

Usage:
    from agent_rag.indexing.index import VectorIndex

    index = VectorIndex(chunks, embedding_dim=384)
    hits = index.search(query_vector, top_k=5)
"""

import heapq
from collections.abc import Sequence

import numpy as np

from agent_rag.exceptions import DimensionMismatch, InvalidConfiguration, MissingEmbedding
from agent_rag.models.document import Chunk, Hit

# Added to the norm so an all-zero vector normalizes to zeros instead of NaN
NORM_EPSILON = 1e-9


def normalize(vector: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return v / (||v|| + 1e-9) as float32."""
    v = np.asarray(vector, dtype=np.float32)
    norm = float(np.sqrt(np.dot(v.astype(np.float64), v.astype(np.float64))))
    return (v / (norm + NORM_EPSILON)).astype(np.float32)


def normalize_rows(matrix: np.ndarray) -> np.ndarray:
    """Row-wise version of normalize() for an (N, D) matrix."""
    m = np.asarray(matrix, dtype=np.float32)
    if m.size == 0:
        return m
    norms = np.linalg.norm(m.astype(np.float64), axis=1, keepdims=True)
    return (m / (norms + NORM_EPSILON)).astype(np.float32)


class VectorIndex:
    """
    A fixed set of embedded chunks for one (agent, retrieval type).

    The index never changes after construction; rebuild it when the
    source documents change. Concurrent search() calls are safe.
    """

    def __init__(self, chunks: Sequence[Chunk], embedding_dim: int):
        """
        Args:
            chunks: Embedded chunks, in the order they should be scanned.
            embedding_dim: Length every embedding must have.

        Raises:
            InvalidConfiguration: If embedding_dim is not positive.
            MissingEmbedding: If a chunk has no embedding.
            DimensionMismatch: If an embedding has the wrong length.
        """
        if embedding_dim <= 0:
            raise InvalidConfiguration(f"embedding_dim must be positive, got {embedding_dim}")

        self._dim = int(embedding_dim)
        self._chunks: list[Chunk] = list(chunks)

        rows = []
        for chunk in self._chunks:
            if chunk.embedding is None:
                raise MissingEmbedding(
                    f"Chunk {chunk.doc_id} #{chunk.order} has no embedding"
                )
            if len(chunk.embedding) != self._dim:
                raise DimensionMismatch(
                    self._dim, len(chunk.embedding),
                    where=f"chunk {chunk.doc_id} #{chunk.order}",
                )
            rows.append(chunk.embedding)

        if rows:
            self._matrix = normalize_rows(np.asarray(rows, dtype=np.float32))
        else:
            self._matrix = np.zeros((0, self._dim), dtype=np.float32)

        # Keep the chunks consistent with what we actually score against
        for chunk, row in zip(self._chunks, self._matrix):
            chunk.embedding = row.tolist()

    @property
    def chunks(self) -> list[Chunk]:
        return self._chunks

    @property
    def embedding_dim(self) -> int:
        return self._dim

    @property
    def matrix(self) -> np.ndarray:
        """Normalized embeddings, shape (N, D). Treat as read-only."""
        return self._matrix

    def __len__(self) -> int:
        return len(self._chunks)

    def search(self, query_vector: Sequence[float] | np.ndarray, top_k: int = 5) -> list[Hit]:
        """
        Return the top_k chunks most similar to query_vector.

        Args:
            query_vector: Raw (not necessarily normalized) query embedding.
            top_k: Maximum number of hits.

        Returns:
            Hits sorted by score descending; ties keep index order.
            Empty when the index is empty or top_k <= 0.

        Raises:
            DimensionMismatch: If the query vector has the wrong length.
        """
        query = normalize(query_vector)
        if query.shape != (self._dim,):
            raise DimensionMismatch(self._dim, int(query.size), where="query vector")

        if top_k <= 0 or not self._chunks:
            return []

        scores = self._matrix @ query

        # Min-heap of (score, -position): the root is the weakest entry,
        # and among equal scores the later position is weaker.
        heap: list[tuple[float, int]] = []
        for position, score in enumerate(scores.tolist()):
            entry = (score, -position)
            if len(heap) < top_k:
                heapq.heappush(heap, entry)
            elif entry > heap[0]:
                heapq.heapreplace(heap, entry)

        ranked = sorted(heap, reverse=True)
        return [
            Hit(chunk=self._chunks[-neg_position], score=score, rank=rank)
            for rank, (score, neg_position) in enumerate(ranked)
        ]

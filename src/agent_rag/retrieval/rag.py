"""
Retrieval facade: one embedder + one index.

search() returns ranked hits. ask() turns those hits into a context
block for a language model: hits are grouped per document, the most
relevant document comes first, and inside a document chunks are put
back in reading order so the model reads coherent passages rather than
scattered fragments.

Usage:
    rag = Rag(embedder, index, agent_name="coach", retrieval_type=RetrievalType.KNOWLEDGE)
    hits = rag.search("How do I reset my password?", top_k=3)
    context = rag.ask("How do I reset my password?", max_chars=800)
"""

from typing import Optional

from agent_rag.base.embedder import BaseEmbedder
from agent_rag.config import RetrievalConfig, RetrievalType
from agent_rag.exceptions import RagError
from agent_rag.indexing.index import VectorIndex
from agent_rag.models.document import Hit


class Rag:
    """
    Query-time view over one (agent, retrieval type) index.

    The embedder is usually shared between many Rag instances and is
    owned by whoever created it (normally the registry); close() only
    drops this instance's reference to its index.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        index: VectorIndex,
        agent_name: str = "",
        retrieval_type: RetrievalType = RetrievalType.KNOWLEDGE,
        config: Optional[RetrievalConfig] = None,
    ):
        self._embedder = embedder
        self._index: Optional[VectorIndex] = index
        self.agent_name = agent_name
        self.retrieval_type = RetrievalType(retrieval_type)
        self._config = config or RetrievalConfig()

    @property
    def index(self) -> VectorIndex:
        if self._index is None:
            raise RagError(f"Rag for {self.agent_name}/{self.retrieval_type.value} is closed")
        return self._index

    @property
    def closed(self) -> bool:
        return self._index is None

    def search(self, query: str, top_k: Optional[int] = None) -> list[Hit]:
        """Embed the query and return the top_k most similar chunks."""
        index = self.index
        k = self._config.top_k if top_k is None else top_k
        query_vector = self._embedder.embed(query)
        return index.search(query_vector, k)

    def ask(
        self,
        query: str,
        top_k: Optional[int] = None,
        max_chars: Optional[int] = None,
    ) -> str:
        """
        Retrieve and stitch hits into one context string.

        Each chunk is written as:
            [source: <doc_id> #<order> | score: <score>]
            <text>

        Stitching stops once the text is longer than max_chars; the chunk
        that crossed the budget is kept whole, so the result can exceed
        max_chars by at most one chunk (and always holds at least one).
        The header is left out when it alone is longer than max_chars.
        No hits gives an empty string.
        """
        budget = self._config.max_chars if max_chars is None else max_chars
        hits = self.search(query, top_k)
        if not hits:
            return ""
        return stitch_hits(hits, budget, header=self._config.header)

    def close(self) -> None:
        self._index = None

    def __enter__(self) -> "Rag":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        size = "closed" if self._index is None else f"{len(self._index)} chunks"
        return f"Rag(agent={self.agent_name!r}, type={self.retrieval_type.value}, {size})"


def order_for_reading(hits: list[Hit]) -> list[Hit]:
    """
    Group hits by document; best document first, chunks in reading order.

    Documents are ranked by their best hit's score (ties keep the order
    in which the documents first appear in hits).
    """
    groups: dict[str, list[Hit]] = {}
    for hit in hits:
        groups.setdefault(hit.chunk.doc_id, []).append(hit)

    ranked_groups = sorted(
        groups.values(),
        key=lambda group: max(h.score for h in group),
        reverse=True,
    )
    return [
        hit
        for group in ranked_groups
        for hit in sorted(group, key=lambda h: h.chunk.order)
    ]


def stitch_hits(hits: list[Hit], max_chars: int, header: str = "") -> str:
    """
    Concatenate hits (reading order) into a budgeted context block.

    The header counts toward max_chars and is dropped when it alone
    would exceed the budget.
    """
    if len(header) > max_chars:
        header = ""
    parts: list[str] = [header] if header else []
    length = len(header)

    for hit in order_for_reading(hits):
        block = (
            f"[source: {hit.chunk.doc_id} #{hit.chunk.order} | score: {hit.score:.3f}]\n"
            f"{hit.chunk.text.strip()}\n\n"
        )
        parts.append(block)
        length += len(block)
        if length > max_chars:
            break

    return "".join(parts)

"""
Document models for the RAG pipeline.

These represent data at each stage:
  Document text (loaded) → Chunk (split, then embedded) → Hit (retrieved + scored)
"""

from typing import Optional

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """
    A bounded slice of one document's text.

    This is the unit that gets embedded and stored in the index. The
    chunker creates it without an embedding; the embedder fills it in.
    Once a chunk is inside a VectorIndex its embedding is unit length.
    """

    doc_id: str = Field(description="Stable identifier of the source document")
    order: int = Field(ge=0, description="Zero-based position within the document's chunk sequence")
    text: str = Field(description="Trimmed chunk content")
    embedding: Optional[list[float]] = Field(
        default=None,
        description="Vector embedding, populated after the embedding step",
    )

    @property
    def is_embedded(self) -> bool:
        return self.embedding is not None


class Hit(BaseModel):
    """
    A chunk with its similarity to a query.

    score is the cosine similarity in [-1, 1]; both vectors are unit
    length so it is just their dot product.
    """

    chunk: Chunk
    score: float = Field(default=0.0, description="Cosine similarity (higher = more similar)")
    rank: int = Field(default=0, description="Position in the result list")

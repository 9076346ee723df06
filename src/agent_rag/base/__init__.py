"""
Abstract base classes defining the contract for each pipeline stage.

Import from here:
    from agent_rag.base import BaseChunker, BaseEmbedder
"""

from .chunker import BaseChunker
from .embedder import BaseEmbedder

__all__ = [
    "BaseChunker",
    "BaseEmbedder",
]

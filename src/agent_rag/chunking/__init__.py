"""
Chunking: document text → ordered, token-bounded chunks.

Usage:
    from agent_rag.chunking import TokenChunker, chunk_by_tokens
"""

from .chunker import TokenChunker, chunk_by_tokens, split_paragraphs, split_sentences, take_tail

__all__ = [
    "TokenChunker",
    "chunk_by_tokens",
    "split_paragraphs",
    "split_sentences",
    "take_tail",
]

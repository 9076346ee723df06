"""
Indexing pipeline: chunk → embed → index → persist.

Usage:
    from agent_rag.indexing import VectorIndex, build_index, save_index, load_index
"""

from .builder import build_index, build_index_file, build_indices, default_index_path, load_documents
from .embeddings import LangChainEmbedder, get_embedder, get_embedding_model
from .index import VectorIndex
from .persistence import dumps_index, load_index, loads_index, save_index

__all__ = [
    # Index
    "VectorIndex",
    # Persistence
    "save_index",
    "load_index",
    "dumps_index",
    "loads_index",
    # Embeddings
    "LangChainEmbedder",
    "get_embedder",
    "get_embedding_model",
    # Builder
    "build_index",
    "build_index_file",
    "build_indices",
    "default_index_path",
    "load_documents",
]

"""
agent-rag — per-agent Retrieval-Augmented context for chat agents.

Quick start:
    from agent_rag import RagRegistry, ContextService, get_embedder, EngineConfig

    config = EngineConfig(indices=[...])
    registry = RagRegistry(get_embedder(config.embedding), config.retrieval)
    registry.initialize(config.indices)

    result = ContextService(registry).get_context("coach", "How do I warm up?")
    print(result.knowledge)

Offline, indices are built with build_index_file() / build_indices()
and saved as .ragx files that the registry loads at startup.
"""

from agent_rag.config import (
    ChunkingConfig,
    EmbeddingConfig,
    EngineConfig,
    IndexSettings,
    LogConfig,
    RetrievalConfig,
    RetrievalType,
)
from agent_rag.exceptions import (
    CorruptIndex,
    DimensionMismatch,
    DuplicateIndex,
    EmbedderFailure,
    InvalidConfiguration,
    MissingEmbedding,
    RagError,
    RegistryClosed,
)
from agent_rag.models import Chunk, ContextResult, Hit, RegistryStatus
from agent_rag.base import BaseChunker, BaseEmbedder
from agent_rag.chunking import TokenChunker, chunk_by_tokens
from agent_rag.indexing import (
    LangChainEmbedder,
    VectorIndex,
    build_index,
    build_index_file,
    build_indices,
    get_embedder,
    load_index,
    save_index,
)
from agent_rag.retrieval import ContextService, Rag, RagRegistry

__all__ = [
    # Retrieval (public API)
    "Rag",
    "RagRegistry",
    "ContextService",
    # Indexing
    "VectorIndex",
    "build_index",
    "build_index_file",
    "build_indices",
    "save_index",
    "load_index",
    "LangChainEmbedder",
    "get_embedder",
    # Chunking
    "TokenChunker",
    "chunk_by_tokens",
    "BaseChunker",
    "BaseEmbedder",
    # Models
    "Chunk",
    "Hit",
    "ContextResult",
    "RegistryStatus",
    # Config
    "RetrievalType",
    "ChunkingConfig",
    "EmbeddingConfig",
    "RetrievalConfig",
    "IndexSettings",
    "LogConfig",
    "EngineConfig",
    # Errors
    "RagError",
    "InvalidConfiguration",
    "CorruptIndex",
    "DimensionMismatch",
    "MissingEmbedding",
    "EmbedderFailure",
    "DuplicateIndex",
    "RegistryClosed",
]

__version__ = "0.1.0"

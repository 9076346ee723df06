"""
Configuration for the RAG engine.

Split into one config per concern so each stage only receives what it
needs. EngineConfig bundles them all for convenience.

Usage:
    # Full config
    config = EngineConfig()

    # Override specific parts
    config = EngineConfig(
        chunking=ChunkingConfig(max_tokens=256, overlap_tokens=32),
        retrieval=RetrievalConfig(top_k=8),
    )

    # Per-agent index settings
    settings = IndexSettings(
        agent_name="coach",
        retrieval_type="knowledge",
        index_path="indices/coach_knowledge.ragx",
    )
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from agent_rag.exceptions import InvalidConfiguration

# Load .env from the project root (walks up from this file to find it).
# Runs once at import time, so env-driven defaults below see it.
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RetrievalType(str, Enum):
    """
    What an index holds for an agent.

    Every agent can have one index of each type: few-shot examples of
    good answers, and background knowledge to ground its replies.
    """

    EXAMPLES = "examples"
    KNOWLEDGE = "knowledge"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class ChunkingConfig(BaseModel):
    """
    Token-bounded chunking configuration.

    Used by: chunking/chunker.py, indexing/builder.py

    Token counts come from the embedder's tokenizer, so the same text
    gives different chunk boundaries with different models. The defaults
    suit a MiniLM-sized model (384 dims, short paragraphs).
    """

    max_tokens: int = Field(
        default=160,
        description="Maximum tokens per chunk (sentence-level fallback slices may exceed it)",
    )
    overlap_tokens: int = Field(
        default=24,
        description="Approximate tokens of trailing context carried into the next chunk",
    )
    embedding_dim: int = Field(
        default=384,
        description="Length of every embedding vector stored in the index",
    )

    @field_validator("max_tokens", "embedding_dim")
    @classmethod
    def _positive(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise InvalidConfiguration(f"{info.field_name} must be positive, got {v}")
        return v

    @field_validator("overlap_tokens")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise InvalidConfiguration(f"overlap_tokens must not be negative, got {v}")
        return v

    @model_validator(mode="after")
    def validate_overlap(self) -> "ChunkingConfig":
        """Overlap must be smaller than the chunk budget, otherwise chunks never advance."""
        if self.overlap_tokens >= self.max_tokens:
            raise InvalidConfiguration(
                f"overlap_tokens ({self.overlap_tokens}) must be less than "
                f"max_tokens ({self.max_tokens})"
            )
        return self


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    Provider is an open string; the factory maps known providers to
    LangChain classes and raises a clear error for unknown ones.

    Examples:
        EmbeddingConfig(provider="openai")
        EmbeddingConfig(provider="huggingface", model_name="sentence-transformers/all-MiniLM-L6-v2")
    """

    provider: str = Field(
        default="huggingface",
        description="Embedding provider: 'openai', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Embedding model identifier",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )


class RetrievalConfig(BaseModel):
    """
    Query-time configuration.

    Used by: retrieval/rag.py, retrieval/registry.py

    max_chars is a soft budget: stitching stops after the chunk that
    crosses it, so the result can run over by at most one chunk. The
    header counts toward the budget and is left out when it alone is
    longer than max_chars.
    """

    top_k: int = Field(default=5, description="Number of hits to retrieve")
    max_chars: int = Field(
        default=1200,
        description="Character budget for stitched context, header included",
    )
    header: str = Field(
        default="### Retrieved context (top-k):\n",
        description="Line written before the first stitched chunk",
    )

    @field_validator("top_k", "max_chars")
    @classmethod
    def _positive(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise InvalidConfiguration(f"{info.field_name} must be positive, got {v}")
        return v


class IndexSettings(BaseModel):
    """
    One index of one agent: where it lives and how it was chunked.

    Used by: indexing/builder.py, retrieval/registry.py
    """

    agent_name: str = Field(description="Agent this index belongs to")
    retrieval_type: RetrievalType = Field(default=RetrievalType.KNOWLEDGE)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    index_path: Optional[Path] = Field(
        default=None,
        description="Index file; builders fall back to <dir>/<agent>_<type>.ragx",
    )
    legacy_format: bool = Field(
        default=False,
        description="Read the file as a headerless index written by the old Unity builder",
    )

    @field_validator("agent_name")
    @classmethod
    def _agent_name_required(cls, v: str) -> str:
        if not v.strip():
            raise InvalidConfiguration("agent_name is required")
        return v.strip()

    @property
    def key(self) -> str:
        return f"{self.agent_name}/{self.retrieval_type.value}"


class LogConfig(BaseModel):
    """Logging verbosity; AGENT_RAG_LOG_LEVEL overrides the default."""

    level: str = Field(
        default_factory=lambda: os.getenv("AGENT_RAG_LOG_LEVEL", "INFO"),
        validate_default=True,
    )

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise InvalidConfiguration(f"Unknown log level: '{v}'")
        return v


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

class EngineConfig(BaseModel):
    """
    Complete engine configuration.

    All sub-configs have defaults, so EngineConfig() with no arguments
    gives a working setup.
    """

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    logging: LogConfig = Field(default_factory=LogConfig)
    indices: list[IndexSettings] = Field(default_factory=list)

"""
Error types raised by the RAG engine.

Everything derives from RagError so callers can catch the whole family
in one place. InvalidConfiguration is not a ValueError:
pydantic only wraps ValueErrors into ValidationError, so config
validators that raise it reach the caller as InvalidConfiguration.

Usage:
    from agent_rag.exceptions import CorruptIndex

    try:
        index = load_index("coach_knowledge.ragx")
    except CorruptIndex as e:
        print(e.message)
"""


class RagError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidConfiguration(RagError):
    """Raised when chunking or index settings are inconsistent."""
    pass


class CorruptIndex(RagError):
    """Raised when an index file is truncated, malformed, or not an index at all."""
    pass


class DimensionMismatch(RagError):
    """Raised when a vector length differs from the index's embedding dimension."""

    def __init__(self, expected: int, actual: int, where: str = "embedding"):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{where} has dimension {actual}, expected {expected}")


class MissingEmbedding(RagError):
    """Raised when a chunk reaches the index without an embedding."""
    pass


class EmbedderFailure(RagError):
    """Raised when an embedder returns output that cannot be mapped back to its inputs."""
    pass


class DuplicateIndex(RagError):
    """Raised when an (agent, retrieval type) pair is registered twice."""
    pass


class RegistryClosed(RagError):
    """Raised when registering into a registry that has been shut down."""
    pass

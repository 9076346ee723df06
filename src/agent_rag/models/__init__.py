"""
Pydantic models shared across the engine.

Import from here rather than reaching into submodules:
    from agent_rag.models import Chunk, Hit, ContextResult
"""

from agent_rag.config import RetrievalType

from .document import Chunk, Hit
from .result import ContextResult, RegistryStatus

__all__ = [
    # Document
    "Chunk",
    "Hit",
    # Result
    "ContextResult",
    "RegistryStatus",
    # Enum
    "RetrievalType",
]

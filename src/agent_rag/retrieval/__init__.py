"""
Query-time retrieval: Rag facade, registry, and context service.

Usage:
    from agent_rag.retrieval import RagRegistry, ContextService
"""

from .context import ContextService
from .rag import Rag, order_for_reading, stitch_hits
from .registry import RagRegistry

__all__ = [
    "Rag",
    "RagRegistry",
    "ContextService",
    "order_for_reading",
    "stitch_hits",
]

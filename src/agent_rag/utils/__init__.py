"""
Utility functions.

Usage:
    from agent_rag.utils import get_logger
"""

from .logger import get_logger

__all__ = ["get_logger"]

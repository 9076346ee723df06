"""
Logger factory for consistent log output across the engine.

Verbosity comes from LogConfig, which reads AGENT_RAG_LOG_LEVEL
(DEBUG, INFO, WARNING, ...). Default is INFO. An unknown level in the
environment falls back to INFO with a warning instead of breaking import.

Usage:
    from agent_rag.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Index loaded")
"""

import logging
import sys
from typing import Optional

from agent_rag.config import LogConfig
from agent_rag.exceptions import InvalidConfiguration

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Create and return a named logger with a standard formatter.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit level override. If None, the level comes from LogConfig.

    Returns:
        A configured ``logging.Logger``.
    """
    config_error = None
    if level is not None:
        resolved_level = level
    else:
        try:
            resolved_level = getattr(logging, LogConfig().level)
        except InvalidConfiguration as e:
            resolved_level = logging.INFO
            config_error = e

    logger = logging.getLogger(name)

    # Only the first call per name attaches a handler
    if not logger.handlers:
        logger.setLevel(resolved_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(resolved_level)
        console_handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(console_handler)

        logger.propagate = False

        if config_error is not None:
            logger.warning(f"{config_error.message}; using INFO")

    return logger

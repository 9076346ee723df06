"""
Registry of loaded indices, keyed by (agent name, retrieval type).

One embedder is shared by every Rag the registry hands out; the
registry owns it and closes it on shutdown(). Agent names are matched
case-insensitively.

Usage:
    registry = RagRegistry(embedder)
    registry.initialize(engine_config.indices)

    rag = registry.lookup("Coach", RetrievalType.KNOWLEDGE)
    if rag is not None:
        print(rag.ask("How do I warm up?"))

    registry.shutdown()
"""

import threading
from collections.abc import Iterable
from typing import Optional

from agent_rag.base.embedder import BaseEmbedder
from agent_rag.config import IndexSettings, RetrievalConfig, RetrievalType
from agent_rag.exceptions import DuplicateIndex, InvalidConfiguration, RagError, RegistryClosed
from agent_rag.indexing.index import VectorIndex
from agent_rag.indexing.persistence import IndexSource, load_index
from agent_rag.models.result import RegistryStatus
from agent_rag.retrieval.rag import Rag
from agent_rag.utils.logger import get_logger

logger = get_logger(__name__)

RegistryKey = tuple[str, RetrievalType]


def registry_key(agent_name: str, retrieval_type: RetrievalType) -> RegistryKey:
    return agent_name.strip().casefold(), RetrievalType(retrieval_type)


class RagRegistry:
    """Thread-safe map from (agent, retrieval type) to a ready Rag."""

    def __init__(self, embedder: BaseEmbedder, config: Optional[RetrievalConfig] = None):
        self._embedder = embedder
        self._config = config or RetrievalConfig()
        self._entries: dict[RegistryKey, Rag] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._initialized = False
        self._last_error = ""

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        agent_name: str,
        retrieval_type: RetrievalType,
        index: VectorIndex,
        replace: bool = False,
    ) -> Rag:
        """
        Wrap index in a Rag and store it under (agent_name, retrieval_type).

        Raises:
            DuplicateIndex: The pair is already registered and replace is False.
            RegistryClosed: shutdown() has been called.
            InvalidConfiguration: agent_name is blank.
        """
        if not agent_name or not agent_name.strip():
            raise InvalidConfiguration("agent_name is required")

        key = registry_key(agent_name, retrieval_type)
        rag = Rag(
            self._embedder,
            index,
            agent_name=agent_name.strip(),
            retrieval_type=key[1],
            config=self._config,
        )

        with self._lock:
            if self._closed:
                raise RegistryClosed(f"Cannot register {agent_name}/{key[1].value}: registry is shut down")
            previous = self._entries.get(key)
            if previous is not None and not replace:
                raise DuplicateIndex(
                    f"An index for {agent_name}/{key[1].value} is already registered; "
                    "pass replace=True to overwrite it"
                )
            self._entries[key] = rag
            self._initialized = True

        if previous is not None:
            previous.close()
            logger.info(f"[REGISTRY] Replaced index for {agent_name}/{key[1].value}")
        else:
            logger.info(f"[REGISTRY] Registered {agent_name}/{key[1].value} ({len(index)} chunks)")
        return rag

    def load(
        self,
        index_source: IndexSource,
        agent_name: str,
        retrieval_type: RetrievalType,
        replace: bool = False,
        legacy: bool = False,
    ) -> Rag:
        """Load a persisted index and register it. Load errors propagate."""
        index = load_index(index_source, legacy=legacy)
        return self.register(agent_name, retrieval_type, index, replace=replace)

    def initialize(self, settings: Iterable[IndexSettings]) -> bool:
        """
        Load every configured index file.

        A failing entry is logged and remembered in last_error; the rest
        still load. Returns True when at least one index was loaded.
        """
        settings = list(settings)
        if not settings:
            self._set_error("No indices configured")
            logger.warning("[REGISTRY] No indices configured")
            return False

        loaded = 0
        for entry in settings:
            if entry.index_path is None:
                self._set_error(f"No index_path configured for {entry.key}")
                logger.error(f"[REGISTRY] No index_path configured for {entry.key}")
                continue
            try:
                self.load(
                    entry.index_path,
                    entry.agent_name,
                    entry.retrieval_type,
                    legacy=entry.legacy_format,
                )
                loaded += 1
            except (OSError, RagError) as e:
                self._set_error(f"Failed to load {entry.key} from {entry.index_path}: {e}")
                logger.error(f"[REGISTRY] Failed to load {entry.key} from {entry.index_path}: {e}")

        logger.info(f"[REGISTRY] Loaded {loaded}/{len(settings)} configured indices")
        return loaded > 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, agent_name: str, retrieval_type: RetrievalType) -> Optional[Rag]:
        """Return the Rag for the pair, or None if unknown or shut down."""
        if not agent_name:
            return None
        key = registry_key(agent_name, retrieval_type)
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, item: tuple[str, RetrievalType]) -> bool:
        agent_name, retrieval_type = item
        return self.lookup(agent_name, retrieval_type) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def agents(self) -> list[str]:
        """Distinct (casefolded) agent names with at least one index."""
        with self._lock:
            return sorted({agent for agent, _ in self._entries})

    @property
    def last_error(self) -> str:
        with self._lock:
            return self._last_error

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def status(self) -> RegistryStatus:
        with self._lock:
            return RegistryStatus(
                initialized=self._initialized and not self._closed,
                agent_count=len({agent for agent, _ in self._entries}),
                index_count=len(self._entries),
                last_error=self._last_error or None,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Close every Rag and the shared embedder. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._initialized = False
            entries = list(self._entries.values())
            self._entries.clear()

        for rag in entries:
            rag.close()
        self._embedder.close()
        logger.info(f"[REGISTRY] Shut down ({len(entries)} indices released)")

    def __enter__(self) -> "RagRegistry":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def _set_error(self, message: str) -> None:
        with self._lock:
            self._last_error = message

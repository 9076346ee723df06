"""
Context service: few-shot examples + knowledge for one chat turn.

Each agent can have an EXAMPLES index (sample conversations in the
agent's voice) and a KNOWLEDGE index (reference material). For a user
message both are queried and the stitched blocks come back together in
a ContextResult, ready to be pasted into the agent's prompt.

Usage:
    service = ContextService(registry)
    result = service.get_context("coach", "How long should I rest between sets?")
    if result.success:
        prompt = f"{result.examples}\n{result.knowledge}"
"""

from collections.abc import Sequence
from typing import Optional

from agent_rag.config import RetrievalType
from agent_rag.exceptions import InvalidConfiguration, RagError
from agent_rag.models.result import ContextResult
from agent_rag.retrieval.registry import RagRegistry
from agent_rag.utils.logger import get_logger

logger = get_logger(__name__)


class ContextService:
    def __init__(self, registry: RagRegistry, top_k: int = 5):
        if top_k <= 0:
            raise InvalidConfiguration(f"top_k must be positive, got {top_k}")
        self._registry = registry
        self._top_k = top_k

    def get_context(self, agent_name: str, message: str) -> ContextResult:
        """
        Query the agent's examples and knowledge indices for message.

        A missing index of either type just leaves that block empty.
        Errors from the embedder propagate.
        """
        if self._registry.closed:
            return ContextResult.error("Registry is shut down")

        examples_rag = self._registry.lookup(agent_name, RetrievalType.EXAMPLES)
        knowledge_rag = self._registry.lookup(agent_name, RetrievalType.KNOWLEDGE)
        if examples_rag is None and knowledge_rag is None:
            logger.warning(f"[CONTEXT] No indices registered for agent '{agent_name}'")
            return ContextResult.error(f"No indices registered for agent '{agent_name}'")

        try:
            examples = self._ask(examples_rag, message)
            knowledge = self._ask(knowledge_rag, message)
        except RagError as e:
            logger.error(f"[CONTEXT] Retrieval failed for agent '{agent_name}': {e.message}")
            return ContextResult.error(e.message)

        logger.debug(
            f"[CONTEXT] {agent_name}: {len(examples)} chars examples, "
            f"{len(knowledge)} chars knowledge"
        )
        return ContextResult(examples=examples, knowledge=knowledge)

    def get_context_for_history(self, agent_name: str, history: Sequence[str]) -> ContextResult:
        """Same as get_context, using the last message of a conversation."""
        if not history:
            return ContextResult.error("Conversation history is empty")
        return self.get_context(agent_name, history[-1])

    def _ask(self, rag, message: str) -> str:
        if rag is None:
            return ""
        return rag.ask(message, top_k=self._top_k)

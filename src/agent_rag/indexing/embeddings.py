"""
Embedding model factory and the LangChain embedder adapter.

get_embedding_model() is the single place that maps provider strings to
LangChain classes. LangChainEmbedder wraps any LangChain Embeddings so
it satisfies BaseEmbedder (embed / token_count / embed_in_place).

Supported providers:
    "openai"      → OpenAIEmbeddings (API-based)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers, default)
    "cohere"      → CohereEmbeddings (API-based)

Usage:
    from agent_rag.indexing.embeddings import get_embedder
    from agent_rag.config import EmbeddingConfig

    embedder = get_embedder(EmbeddingConfig())
    vector = embedder.embed("What is the capital of France?")
"""

from collections.abc import Callable, Sequence
from typing import Optional

from langchain_core.embeddings import Embeddings

from agent_rag.base.embedder import BaseEmbedder
from agent_rag.config import EmbeddingConfig


def whitespace_token_count(text: str) -> int:
    """Token count approximation: number of whitespace-separated words."""
    return len(text.split())


class LangChainEmbedder(BaseEmbedder):
    """
    BaseEmbedder backed by a LangChain Embeddings model.

    LangChain models do not expose their tokenizer uniformly, so the
    token counter is injected. Pass the model's real tokenizer when
    chunk budgets must be exact; the default counts words.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        token_counter: Optional[Callable[[str], int]] = None,
        batch_size: int = 64,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._embeddings = embeddings
        self._token_counter = token_counter or whitespace_token_count
        self._batch_size = batch_size

    @property
    def model(self) -> Embeddings:
        return self._embeddings

    def embed(self, text: str) -> list[float]:
        return list(self._embeddings.embed_query(text))

    def token_count(self, text: str) -> int:
        return self._token_counter(text)

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed in batches of batch_size; output order matches input order."""
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = list(texts[start:start + self._batch_size])
            vectors.extend(list(v) for v in self._embeddings.embed_documents(batch))
        return vectors


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Each provider has its own LangChain integration package. They are
    imported lazily so only the package for the chosen provider needs
    to be installed.

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the provider's package is not installed.
    """
    provider = config.provider.lower()

    if provider == "openai":
        try:
            from langchain_openai import OpenAIEmbeddings
        except ImportError:
            raise ImportError(
                "OpenAI embeddings require langchain-openai. "
                "Install with: pip install agent-rag[openai]"
            )

        return OpenAIEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install agent-rag[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif provider == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError:
            raise ImportError(
                "Cohere embeddings require langchain-cohere. "
                "Install with: pip install agent-rag[cohere]"
            )

        return CohereEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    else:
        raise ValueError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'openai', 'huggingface', 'cohere'. "
            f"For other providers, wrap a LangChain Embeddings instance in LangChainEmbedder."
        )


def get_embedder(
    config: EmbeddingConfig,
    token_counter: Optional[Callable[[str], int]] = None,
) -> LangChainEmbedder:
    """Build the configured LangChain model and wrap it as a BaseEmbedder."""
    return LangChainEmbedder(get_embedding_model(config), token_counter=token_counter)

"""
Shared test fixtures for the agent-rag test suite.

Provides reusable fixtures: a deterministic hashing embedder, token
counters, sample documents, configs, and small hand-built indices.
No model downloads or API calls anywhere in the suite.
"""

import hashlib
import re

import numpy as np
import pytest

from agent_rag.base.embedder import BaseEmbedder
from agent_rag.config import ChunkingConfig, IndexSettings, RetrievalConfig, RetrievalType
from agent_rag.indexing.index import VectorIndex
from agent_rag.models.document import Chunk

HASH_DIM = 2048

_WORD = re.compile(r"[a-z0-9]+")


def word_count(text: str) -> int:
    """Whitespace word count."""
    return len(text.split())


def approx_subword_count(text: str) -> int:
    """Roughly two characters per token, like a subword tokenizer on short words."""
    return (len(text) + 1) // 2


class HashEmbedder(BaseEmbedder):
    """
    Bag-of-words embedder: every word adds 1.0 to the bucket md5(word) % dim.

    Deterministic across runs and processes, and texts that share words
    get a higher cosine similarity, which is all retrieval tests need.
    """

    def __init__(self, dim: int = HASH_DIM, token_counter=approx_subword_count):
        self.dim = dim
        self._token_counter = token_counter
        self.embed_calls = 0
        self.closed = False

    def embed(self, text: str) -> list[float]:
        self.embed_calls += 1
        vector = [0.0] * self.dim
        for word in _WORD.findall(text.lower()):
            bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % self.dim
            vector[bucket] += 1.0
        return vector

    def token_count(self, text: str) -> int:
        return self._token_counter(text)

    def close(self) -> None:
        self.closed = True


def make_chunk(doc_id: str, order: int, text: str, embedding) -> Chunk:
    return Chunk(doc_id=doc_id, order=order, text=text, embedding=[float(x) for x in embedding])


# ---------------------------------------------------------------------------
# Embedder / counter fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def hash_embedder():
    return HashEmbedder()


@pytest.fixture
def word_counter():
    return word_count


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def chunking_config():
    """Small budget so a few short paragraphs already need several chunks."""
    return ChunkingConfig(max_tokens=20, overlap_tokens=2, embedding_dim=HASH_DIM)


@pytest.fixture
def retrieval_config():
    return RetrievalConfig(top_k=3, max_chars=400)


@pytest.fixture
def knowledge_settings(tmp_path):
    return IndexSettings(
        agent_name="Coach",
        retrieval_type=RetrievalType.KNOWLEDGE,
        chunking=ChunkingConfig(max_tokens=20, overlap_tokens=2, embedding_dim=HASH_DIM),
        index_path=tmp_path / "coach_knowledge.ragx",
    )


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def capitals_document():
    return {"doc1": "Paris is the capital of France.\n\nBerlin is the capital of Germany."}


@pytest.fixture
def sample_documents():
    """A few multi-paragraph documents on unrelated topics."""
    return {
        "warmup": (
            "Start every session with five minutes of light cardio.\n\n"
            "Follow the cardio with dynamic stretches for the hips and shoulders.\n\n"
            "Finish the warmup with two light sets of the first exercise."
        ),
        "recovery": (
            "Sleep is the most important recovery tool.\n\n"
            "Rest at least one full day between heavy sessions for the same muscle group."
        ),
        "nutrition": (
            "Protein intake supports muscle repair after training.\n\n"
            "Drink water before, during and after every session."
        ),
    }


@pytest.fixture
def small_index():
    """
    Four hand-built 3-d chunks with known similarities to the x axis.

    Query (1, 0, 0) scores: a#0 1.0, a#1 0.8, b#0 0.6, b#1 0.0.
    """
    chunks = [
        make_chunk("a", 0, "alpha zero", [1.0, 0.0, 0.0]),
        make_chunk("a", 1, "alpha one", [0.8, 0.6, 0.0]),
        make_chunk("b", 0, "beta zero", [0.6, 0.8, 0.0]),
        make_chunk("b", 1, "beta one", [0.0, 0.0, 1.0]),
    ]
    return VectorIndex(chunks, embedding_dim=3)


@pytest.fixture
def random_index():
    """50 random 16-d chunks from a fixed seed, for brute-force comparisons."""
    rng = np.random.default_rng(1234)
    vectors = rng.normal(size=(50, 16))
    chunks = [
        make_chunk(f"doc{i % 7}", i // 7, f"chunk {i}", vectors[i])
        for i in range(50)
    ]
    return VectorIndex(chunks, embedding_dim=16)

"""Tests for RagRegistry — registration, lookup, initialize from settings, shutdown."""

import threading

import pytest

from agent_rag.config import IndexSettings, RetrievalType
from agent_rag.exceptions import CorruptIndex, DuplicateIndex, InvalidConfiguration, RegistryClosed
from agent_rag.indexing.builder import build_index_file
from agent_rag.indexing.index import VectorIndex
from agent_rag.indexing.persistence import dumps_index, save_index
from agent_rag.retrieval.registry import RagRegistry, registry_key

from conftest import HASH_DIM


@pytest.fixture
def registry(hash_embedder):
    return RagRegistry(hash_embedder)


@pytest.fixture
def built_settings(tmp_path, sample_documents, hash_embedder, knowledge_settings):
    """Knowledge + examples index files for 'Coach', built with the stub embedder."""
    examples = knowledge_settings.model_copy(update={
        "retrieval_type": RetrievalType.EXAMPLES,
        "index_path": tmp_path / "coach_examples.ragx",
    })
    build_index_file(sample_documents, hash_embedder, knowledge_settings)
    build_index_file({"chat": "Q: Should I stretch? A: Yes, after the cardio."}, hash_embedder, examples)
    return [knowledge_settings, examples]


class TestRegister:

    def test_register_and_lookup(self, registry, small_index):
        rag = registry.register("Coach", RetrievalType.KNOWLEDGE, small_index)

        assert registry.lookup("Coach", RetrievalType.KNOWLEDGE) is rag
        assert rag.agent_name == "Coach"
        assert rag.retrieval_type == RetrievalType.KNOWLEDGE

    def test_lookup_is_case_insensitive(self, registry, small_index):
        rag = registry.register("Coach", RetrievalType.KNOWLEDGE, small_index)
        assert registry.lookup("coach", "knowledge") is rag
        assert registry.lookup("  COACH ", RetrievalType.KNOWLEDGE) is rag

    def test_lookup_unknown(self, registry, small_index):
        registry.register("coach", RetrievalType.KNOWLEDGE, small_index)

        assert registry.lookup("buddy", RetrievalType.KNOWLEDGE) is None
        assert registry.lookup("coach", RetrievalType.EXAMPLES) is None
        assert registry.lookup("", RetrievalType.KNOWLEDGE) is None

    def test_one_entry_per_pair(self, registry, small_index):
        registry.register("coach", RetrievalType.KNOWLEDGE, small_index)
        with pytest.raises(DuplicateIndex):
            registry.register("COACH", RetrievalType.KNOWLEDGE, small_index)

    def test_replace(self, registry, small_index, random_index):
        old = registry.register("coach", RetrievalType.KNOWLEDGE, small_index)
        new = registry.register("coach", RetrievalType.KNOWLEDGE, random_index, replace=True)

        assert registry.lookup("coach", RetrievalType.KNOWLEDGE) is new
        assert old.closed
        assert len(registry) == 1

    def test_blank_agent_name(self, registry, small_index):
        with pytest.raises(InvalidConfiguration, match="agent_name"):
            registry.register("  ", RetrievalType.KNOWLEDGE, small_index)

    def test_both_types_per_agent(self, registry, small_index, random_index):
        registry.register("coach", RetrievalType.KNOWLEDGE, small_index)
        registry.register("coach", RetrievalType.EXAMPLES, random_index)
        registry.register("buddy", RetrievalType.KNOWLEDGE, small_index)

        assert len(registry) == 3
        assert registry.agents() == ["buddy", "coach"]
        assert ("Coach", RetrievalType.EXAMPLES) in registry
        assert ("buddy", RetrievalType.EXAMPLES) not in registry

    def test_concurrent_registration(self, registry, small_index):
        def worker(i):
            registry.register(f"agent{i}", RetrievalType.KNOWLEDGE, small_index)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 20

    def test_registry_key(self):
        assert registry_key(" Coach ", "examples") == ("coach", RetrievalType.EXAMPLES)


class TestLoad:

    def test_load_from_path(self, registry, small_index, tmp_path):
        path = tmp_path / "coach.ragx"
        save_index(small_index, path)

        rag = registry.load(path, "coach", RetrievalType.KNOWLEDGE)

        assert len(rag.index) == 4
        assert registry.lookup("coach", RetrievalType.KNOWLEDGE) is rag

    def test_load_from_bytes(self, registry, small_index):
        rag = registry.load(dumps_index(small_index), "coach", RetrievalType.EXAMPLES)
        assert len(rag.index) == 4

    def test_load_legacy(self, registry, small_index):
        rag = registry.load(dumps_index(small_index, legacy=True), "coach", RetrievalType.KNOWLEDGE, legacy=True)
        assert len(rag.index) == 4

    def test_load_errors_propagate(self, registry):
        with pytest.raises(CorruptIndex):
            registry.load(b"not an index", "coach", RetrievalType.KNOWLEDGE)
        assert len(registry) == 0


class TestInitialize:

    def test_loads_all_configured(self, registry, built_settings):
        assert registry.initialize(built_settings) is True

        status = registry.status()
        assert status.initialized
        assert status.agent_count == 1
        assert status.index_count == 2
        assert status.describe() == "Initialized: 1 agents, 2 indices"
        assert registry.lookup("coach", RetrievalType.EXAMPLES) is not None

    def test_failures_do_not_abort(self, registry, built_settings, tmp_path):
        missing = IndexSettings(agent_name="buddy", index_path=tmp_path / "missing.ragx")
        corrupt_path = tmp_path / "corrupt.ragx"
        corrupt_path.write_bytes(b"garbage")
        corrupt = IndexSettings(agent_name="pal", index_path=corrupt_path)

        assert registry.initialize([missing, *built_settings, corrupt]) is True

        assert len(registry) == 2
        assert "pal/knowledge" in registry.last_error
        assert registry.status().last_error == registry.last_error

    def test_entry_without_path(self, registry):
        assert registry.initialize([IndexSettings(agent_name="coach")]) is False
        assert "No index_path" in registry.last_error

    def test_nothing_loaded(self, registry, tmp_path):
        settings = [IndexSettings(agent_name="coach", index_path=tmp_path / "missing.ragx")]

        assert registry.initialize(settings) is False
        assert not registry.status().initialized
        assert "coach/knowledge" in registry.last_error

    def test_empty_settings(self, registry):
        assert registry.initialize([]) is False
        assert registry.last_error == "No indices configured"
        assert registry.status().describe() == "Not initialized. Error: No indices configured"

    def test_legacy_files(self, registry, small_index, tmp_path):
        path = tmp_path / "old.ragx"
        save_index(small_index, path, legacy=True)
        settings = IndexSettings(agent_name="coach", index_path=path, legacy_format=True)

        assert registry.initialize([settings]) is True


class TestShutdown:

    def test_shutdown_releases_everything(self, registry, hash_embedder, small_index):
        rag = registry.register("coach", RetrievalType.KNOWLEDGE, small_index)

        registry.shutdown()

        assert rag.closed
        assert hash_embedder.closed
        assert registry.lookup("coach", RetrievalType.KNOWLEDGE) is None
        assert len(registry) == 0
        assert not registry.status().initialized

    def test_register_after_shutdown(self, registry, small_index):
        registry.shutdown()
        with pytest.raises(RegistryClosed):
            registry.register("coach", RetrievalType.KNOWLEDGE, small_index)

    def test_shutdown_twice(self, registry):
        registry.shutdown()
        registry.shutdown()
        assert registry.closed

    def test_context_manager(self, hash_embedder, small_index):
        with RagRegistry(hash_embedder) as registry:
            registry.register("coach", RetrievalType.KNOWLEDGE, small_index)
        assert registry.lookup("coach", RetrievalType.KNOWLEDGE) is None
        assert hash_embedder.closed

    def test_status_before_anything(self, registry):
        status = registry.status()
        assert not status.initialized
        assert status.index_count == 0
        assert status.last_error is None


def test_search_through_registry(registry, built_settings):
    registry.initialize(built_settings)
    rag = registry.lookup("COACH", RetrievalType.KNOWLEDGE)

    hits = rag.search("How important is sleep for recovery?", top_k=1)

    assert hits[0].chunk.doc_id == "recovery"


def test_empty_index_registers(registry):
    rag = registry.register("coach", RetrievalType.KNOWLEDGE, VectorIndex([], embedding_dim=HASH_DIM))
    assert rag.ask("anything") == ""

"""
Basic example — build an agent's indices, then fetch context for a chat turn.

This script:
    1. Loads .txt documents for one agent
    2. Builds and saves a knowledge index and an examples index
    3. Loads both through the registry and prints the context for a few questions

Run (needs the huggingface extra: pip install agent-rag[huggingface]):
    python examples/basic_rag.py data/coach/knowledge data/coach/examples
"""

import sys

from agent_rag import (
    ChunkingConfig,
    ContextService,
    EngineConfig,
    IndexSettings,
    RagRegistry,
    RetrievalType,
    build_index_file,
    get_embedder,
)
from agent_rag.indexing import load_documents


def main(knowledge_dir: str, examples_dir: str):
    config = EngineConfig(
        chunking=ChunkingConfig(max_tokens=160, overlap_tokens=24, embedding_dim=384),
    )
    embedder = get_embedder(config.embedding)

    # --- Offline: build one index per retrieval type ---
    settings = [
        IndexSettings(agent_name="coach", retrieval_type=RetrievalType.KNOWLEDGE, chunking=config.chunking),
        IndexSettings(agent_name="coach", retrieval_type=RetrievalType.EXAMPLES, chunking=config.chunking),
    ]
    sources = {RetrievalType.KNOWLEDGE: knowledge_dir, RetrievalType.EXAMPLES: examples_dir}

    for i, entry in enumerate(settings):
        path = build_index_file(load_documents(sources[entry.retrieval_type]), embedder, entry, "indices")
        settings[i] = entry.model_copy(update={"index_path": path})

    # --- Online: load and query ---
    with RagRegistry(embedder, config.retrieval) as registry:
        if not registry.initialize(settings):
            print(registry.status().describe())
            return

        service = ContextService(registry, top_k=config.retrieval.top_k)
        questions = [
            "How should I warm up before lifting?",
            "How many rest days do I need per week?",
        ]

        for q in questions:
            result = service.get_context("coach", q)
            print(f"\nQ: {q}")
            print(result.examples or "(no examples)")
            print(result.knowledge or "(no knowledge)")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)
    main(sys.argv[1], sys.argv[2])

"""
Index build pipeline: documents → chunks → embeddings → VectorIndex → file.

This is the offline half of the engine. Indices are built ahead of
time, saved as binary files, and later loaded by the registry without
re-embedding anything.

Usage:
    from agent_rag.indexing.builder import build_index_file, load_documents
    from agent_rag.config import IndexSettings

    docs = load_documents("docs/coach")
    path = build_index_file(docs, embedder, IndexSettings(agent_name="coach"), "indices")
"""

import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Union

from agent_rag.base.embedder import BaseEmbedder
from agent_rag.chunking.chunker import TokenChunker
from agent_rag.config import ChunkingConfig, IndexSettings
from agent_rag.exceptions import InvalidConfiguration
from agent_rag.indexing.index import VectorIndex
from agent_rag.indexing.persistence import save_index
from agent_rag.utils.logger import get_logger

logger = get_logger(__name__)

INDEX_SUFFIX = ".ragx"


def load_documents(
    directory: Union[str, Path],
    pattern: str = "*.txt",
) -> dict[str, str]:
    """
    Read every matching file under directory into {doc_id: text}.

    doc_id is the file name without extension. Files are read as UTF-8,
    falling back to latin-1 for files that are not valid UTF-8.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    folder = Path(directory)
    if not folder.is_dir():
        raise FileNotFoundError(f"Document folder does not exist: {folder}")

    documents: dict[str, str] = {}
    for file_path in sorted(folder.rglob(pattern)):
        if not file_path.is_file():
            continue
        try:
            text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            text = file_path.read_text(encoding="latin-1")
        documents[file_path.stem] = text
    return documents


def build_index(
    documents: Mapping[str, str],
    embedder: BaseEmbedder,
    chunking: Optional[ChunkingConfig] = None,
) -> VectorIndex:
    """
    Chunk, embed, and index a set of documents.

    Chunking uses the embedder's own token counter so budgets match
    what the model sees. A document set that yields no chunks gives an
    empty (but valid) index; searching it returns nothing.

    Args:
        documents: {doc_id: full text}.
        embedder: Supplies token counts and embeddings.
        chunking: Token budget, overlap, and embedding dimension.

    Returns:
        A VectorIndex over every chunk, in document then chunk order.
    """
    chunking = chunking or ChunkingConfig()
    chunker = TokenChunker(embedder.token_count, chunking)

    chunks = chunker.chunk_documents(documents)
    if not chunks:
        logger.warning(f"[BUILDER] No chunks produced from {len(documents)} documents")
        return VectorIndex([], chunking.embedding_dim)

    t_start = time.perf_counter()
    embedder.embed_in_place(chunks)
    logger.debug(
        f"[BUILDER] Embedded {len(chunks)} chunks in {time.perf_counter() - t_start:.2f}s"
    )

    return VectorIndex(chunks, chunking.embedding_dim)


def default_index_path(directory: Union[str, Path], settings: IndexSettings) -> Path:
    """<directory>/<agent>_<type>.ragx, agent name lowercased."""
    name = f"{settings.agent_name.lower()}_{settings.retrieval_type.value}{INDEX_SUFFIX}"
    return Path(directory) / name


def build_index_file(
    documents: Mapping[str, str],
    embedder: BaseEmbedder,
    settings: IndexSettings,
    directory: Union[str, Path, None] = None,
) -> Path:
    """
    Build an index for one agent and save it.

    The file goes to settings.index_path when set, otherwise to
    default_index_path(directory, settings).

    Returns:
        Path of the written file.
    """
    if settings.index_path is not None:
        path = Path(settings.index_path)
    elif directory is not None:
        path = default_index_path(directory, settings)
    else:
        raise InvalidConfiguration(f"No index_path or directory given for {settings.key}")

    index = build_index(documents, embedder, settings.chunking)
    save_index(index, path, legacy=settings.legacy_format)

    logger.info(f"[BUILDER] Built index for {settings.key}: {len(index)} chunks -> {path}")
    return path


def build_indices(
    jobs: Sequence[tuple[IndexSettings, Mapping[str, str]]],
    embedder: BaseEmbedder,
    directory: Union[str, Path],
    max_workers: int = 1,
    strict: bool = False,
) -> dict[str, Path]:
    """
    Build several independent indices.

    Each (agent, type) pair produces its own file, so builds can run in
    parallel; max_workers > 1 only helps if the embedder is thread-safe.

    A failed build never stops the others. With strict=False it is only
    logged and left out of the result, so compare the returned keys
    with the jobs to spot failures. With strict=True every job still
    runs, then the first failure is re-raised with its original type.

    Returns:
        {settings.key: written path} for every build that succeeded.
    """
    if max_workers <= 0:
        raise ValueError(f"max_workers must be positive, got {max_workers}")

    built: dict[str, Path] = {}
    failures: list[Exception] = []

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        future_to_settings = {
            pool.submit(build_index_file, documents, embedder, settings, directory): settings
            for settings, documents in jobs
        }

        for future in as_completed(future_to_settings):
            settings = future_to_settings[future]
            try:
                built[settings.key] = future.result()
            except Exception as e:
                logger.exception(f"[BUILDER] Failed to build index for {settings.key}")
                failures.append(e)

    logger.info(f"[BUILDER] Built {len(built)}/{len(jobs)} indices")

    if strict and failures:
        raise failures[0]
    return built

"""Ingestion pipeline — load → chunk → probe dimension → embed + upsert.

The pipeline runs as a one-shot batch job::

    pdf-qa-ingest manual.pdf other.pdf --folder ./pdf_docs

Before anything is written, the output dimension of the embedding
provider is compared with the dimension the vector index was created
with; a mismatch aborts the run with :class:`ConfigurationError`.
Each chunk is then embedded and upserted independently, at most
``max_concurrency`` at a time, and its outcome is recorded in the
returned :class:`IngestionReport`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import TYPE_CHECKING

from pdf_qa.config import settings
from pdf_qa.errors import ConfigurationError, ExternalServiceError
from pdf_qa.ingestion.chunker import chunk_documents
from pdf_qa.ingestion.embedder import embed_text, get_embeddings, probe_dimension
from pdf_qa.ingestion.loader import load_sources
from pdf_qa.ingestion.models import Chunk, ChunkOutcome, IngestionReport
from pdf_qa.resilience import RetryPolicy, call_with_retry
from pdf_qa.retrieval.models import IndexRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from pdf_qa.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def check_dimensions(
    embeddings: Embeddings,
    store: VectorStoreBase,
    *,
    policy: RetryPolicy | None = None,
) -> int:
    """Verify the embedder and the index agree on vector dimension.

    Returns
    -------
    int
        The shared dimension.

    Raises
    ------
    ConfigurationError
        When the probe embedding and the index dimension differ.
    """
    probe_dim = probe_dimension(embeddings, policy=policy)
    logger.info("Embedding dimension: %d", probe_dim)
    index_dim = call_with_retry(
        store.configured_dimension,
        description="vector store describe",
        policy=policy,
    )
    logger.info("Index %r dimension: %d", store.index_name, index_dim)

    if probe_dim != index_dim:
        raise ConfigurationError(
            f"Embedding dimension {probe_dim} does not match index dimension {index_dim}. "
            f"Recreate the index {store.index_name!r} with dimension {probe_dim} "
            f"or use an embedding model that outputs {index_dim} dimensions."
        )
    return probe_dim


def _index_chunk(
    chunk: Chunk,
    embeddings: Embeddings,
    store: VectorStoreBase,
    policy: RetryPolicy | None,
) -> ChunkOutcome:
    record_id = chunk.record_id()
    vector = embed_text(embeddings, chunk.text, policy=policy)
    record = IndexRecord(
        id=record_id,
        vector=vector,
        text=chunk.text,
        metadata=chunk.record_metadata(),
    )
    call_with_retry(
        lambda: store.upsert([record]),
        description="vector store upsert",
        policy=policy,
    )
    return ChunkOutcome(
        record_id=record_id,
        source=chunk.source,
        sequence_index=chunk.sequence_index,
        ok=True,
    )


def index_chunks(
    chunks: Sequence[Chunk],
    embeddings: Embeddings,
    store: VectorStoreBase,
    *,
    max_concurrency: int = 5,
    fail_fast: bool = False,
    policy: RetryPolicy | None = None,
) -> list[ChunkOutcome]:
    """Embed and upsert *chunks* with at most *max_concurrency* in flight.

    With ``fail_fast`` the first failure cancels the pending work and is
    re-raised; otherwise each failure is recorded as a failed outcome.
    """
    outcomes: list[ChunkOutcome] = []
    with ThreadPoolExecutor(max_workers=max_concurrency) as pool:
        futures = {
            pool.submit(_index_chunk, chunk, embeddings, store, policy): chunk
            for chunk in chunks
        }
        for future in as_completed(futures):
            chunk = futures[future]
            try:
                outcomes.append(future.result())
            except Exception as exc:
                if fail_fast:
                    for pending in futures:
                        pending.cancel()
                    if isinstance(exc, ExternalServiceError):
                        raise
                    raise ExternalServiceError(
                        f"Indexing {chunk.source}#{chunk.sequence_index} failed: {exc}"
                    ) from exc
                logger.error(
                    "Failed to index %s#%d: %s", chunk.source, chunk.sequence_index, exc
                )
                outcomes.append(
                    ChunkOutcome(
                        record_id=chunk.record_id(),
                        source=chunk.source,
                        sequence_index=chunk.sequence_index,
                        ok=False,
                        error=str(exc),
                    )
                )
    return outcomes


def ingest(
    manual_paths: Sequence[str | Path],
    folder_path: str | Path | None,
    *,
    embeddings: Embeddings | None = None,
    store: VectorStoreBase | None = None,
    chunk_size: int | None = None,
    chunk_overlap: int | None = None,
    max_concurrency: int | None = None,
    fail_fast: bool = False,
    policy: RetryPolicy | None = None,
) -> IngestionReport:
    """Index the given PDFs into the vector store.

    Parameters
    ----------
    manual_paths:
        PDF files named explicitly.
    folder_path:
        Folder scanned (non-recursively) for further PDFs; may be missing.
    embeddings / store:
        Collaborators; default to the ones configured in settings.
    chunk_size / chunk_overlap / max_concurrency:
        Override the corresponding settings.
    fail_fast:
        Abort the whole batch on the first chunk failure.
    policy:
        Timeout/retry policy for every external call.

    Returns
    -------
    IngestionReport
        Counts plus one outcome per chunk.

    Raises
    ------
    ConfigurationError
        On embedding/index dimension mismatch — before any write.
    ExternalServiceError
        When a named PDF cannot be loaded, or on the first chunk failure
        with ``fail_fast``.
    """
    documents = load_sources(manual_paths, folder_path)
    logger.info("Loaded %d documents from %d manual path(s) + %s",
                len(documents), len(manual_paths), folder_path)

    chunks = chunk_documents(
        documents,
        chunk_size=chunk_size or settings.chunk_size,
        chunk_overlap=settings.chunk_overlap if chunk_overlap is None else chunk_overlap,
        strategy=settings.chunking_strategy,
    )
    logger.info("Chunking done: %d chunks created", len(chunks))

    if embeddings is None:
        embeddings = get_embeddings()
    if store is None:
        from pdf_qa.retrieval.retriever import get_vector_store

        store = get_vector_store()

    dimension = check_dimensions(embeddings, store, policy=policy)

    logger.info("Uploading %d chunks to index %r", len(chunks), store.index_name)
    outcomes = index_chunks(
        chunks,
        embeddings,
        store,
        max_concurrency=max_concurrency or settings.ingest_max_concurrency,
        fail_fast=fail_fast,
        policy=policy,
    )

    report = IngestionReport(
        documents_loaded=len(documents),
        chunks_total=len(chunks),
        embedding_dimension=dimension,
        outcomes=outcomes,
    )
    logger.info(report.summary())
    return report


# ──────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Index PDF documents into the vector store")
    parser.add_argument(
        "pdfs",
        nargs="*",
        help="PDF files to index in addition to the folder (default: MANUAL_PDFS)",
    )
    parser.add_argument(
        "--folder",
        default=settings.pdf_folder,
        help="Folder scanned for *.pdf files (default: %(default)s)",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Abort on the first chunk that fails to index",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings.validate_required()
        report = ingest(args.pdfs or settings.manual_pdfs, args.folder, fail_fast=args.fail_fast)
        report.raise_for_failures()
    except (ConfigurationError, ExternalServiceError) as exc:
        logger.error("Ingestion failed: %s", exc)
        return 1

    print(report.summary())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

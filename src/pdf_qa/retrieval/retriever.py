"""Semantic retriever — embed a question, search the index, attach citations.

This module is the **primary public interface** for retrieval.  The
query service calls it once per request with the rewritten question.

Usage::

    from pdf_qa.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever()
    results   = retriever.search("Which platforms does the SDK support?")
    for r in results:
        print(r.citation.short_ref(), r.content[:80])
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pdf_qa.config import settings
from pdf_qa.ingestion.embedder import embed_text, get_embeddings
from pdf_qa.resilience import RetryPolicy, call_with_retry
from pdf_qa.retrieval.base import VectorStoreBase
from pdf_qa.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_vector_store() -> VectorStoreBase:
    """Instantiate the backend selected by ``settings.vector_store_backend``."""
    if settings.vector_store_backend == "chroma":
        from pdf_qa.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore()

    from pdf_qa.retrieval.pinecone_store import PineconeVectorStore

    return PineconeVectorStore(settings.pinecone_index_name, api_key=settings.pinecone_api_key)


class SemanticRetriever:
    """High-level retriever over any :class:`VectorStoreBase`.

    Parameters
    ----------
    store:
        A concrete vector-store backend.  When *None*, the backend named in
        the global settings is created.
    embeddings:
        Embedding function used to vectorise queries.  Defaults to
        :func:`~pdf_qa.ingestion.embedder.get_embeddings`.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Minimum similarity score; results below this are discarded.
    policy:
        Timeout/retry policy applied to the embedding and query calls.
    """

    def __init__(
        self,
        store: VectorStoreBase | None = None,
        embeddings: Embeddings | None = None,
        *,
        default_k: int = 10,
        score_threshold: float = 0.0,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._store = store if store is not None else get_vector_store()
        self._embeddings = embeddings if embeddings is not None else get_embeddings()
        self.default_k = default_k
        self.score_threshold = score_threshold
        self._policy = policy

    @property
    def store(self) -> VectorStoreBase:
        """The backend this retriever queries."""
        return self._store

    def search(self, query: str, *, k: int | None = None) -> list[RetrievalResult]:
        """Embed *query* and return the top-*k* results with citations.

        Results keep the store's ranking (descending similarity); results
        scoring under ``score_threshold`` are dropped.
        """
        embedding = embed_text(self._embeddings, query, policy=self._policy)
        return self.search_by_embedding(embedding, k=k)

    def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = k or self.default_k
        raw_hits = call_with_retry(
            lambda: self._store.similarity_search(embedding, k=k, include_metadata=True),
            description="vector store query",
            policy=self._policy,
        )
        return self._to_results(raw_hits)

    def _to_results(self, raw_hits: list[dict[str, Any]]) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in raw_hits:
            score = hit.get("score")
            if score is not None and score < self.score_threshold:
                continue

            meta = hit.get("metadata") or {}
            citation = Citation(
                document_id=hit.get("id"),
                source=str(meta.get("source", "unknown")),
                chunk_index=_as_int(meta.get("chunk_index")),
                page=_as_int(meta.get("page")),
                score=score,
                metadata=meta,
            )
            results.append(RetrievalResult(content=hit.get("content", ""), citation=citation))
        return results


def _as_int(value: Any) -> int | None:
    # Pinecone returns numeric metadata as floats.
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@lru_cache(maxsize=1)
def get_retriever() -> SemanticRetriever:
    """Return the process-wide retriever built from settings."""
    return SemanticRetriever(
        default_k=settings.retrieval_top_k,
        score_threshold=settings.retrieval_score_threshold,
    )

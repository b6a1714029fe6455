"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from pdf_qa.config import settings
from pdf_qa.errors import ConfigurationError
from pdf_qa.retrieval.base import VectorStoreBase
from pdf_qa.retrieval.models import IndexRecord

logger = logging.getLogger(__name__)

# Collection-metadata key recording the vector dimension.
DIMENSION_KEY = "dimension"


def _scalar_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    return {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Unlike Pinecone, a Chroma collection has no intrinsic dimension, so
    the expected dimension is declared in the collection metadata when the
    collection is first created and read back from there afterwards.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    dimension:
        Dimension declared on the collection if it does not exist yet.
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        dimension: int = settings.chroma_dimension,
    ) -> None:
        super().__init__(collection_name)
        self._client = chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            collection_name,
            metadata={"hnsw:space": "cosine", DIMENSION_KEY: dimension},
        )

    def configured_dimension(self) -> int:
        meta = self._collection.metadata or {}
        if DIMENSION_KEY not in meta:
            raise ConfigurationError(
                f"Chroma collection {self.index_name!r} does not declare a "
                f"{DIMENSION_KEY!r}; recreate it through ChromaVectorStore."
            )
        return int(meta[DIMENSION_KEY])

    def upsert(self, records: list[IndexRecord]) -> None:
        self._collection.upsert(
            ids=[r.id for r in records],
            embeddings=[r.vector for r in records],
            documents=[r.text for r in records],
            metadatas=[_scalar_metadata(r.metadata) for r in records],
        )

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 10,
        include_metadata: bool = True,
    ) -> list[dict[str, Any]]:
        include = ["documents", "distances"]
        if include_metadata:
            include.append("metadatas")
        results = self._collection.query(
            query_embeddings=[query_embedding],
            n_results=k,
            include=include,
        )

        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        metas = (results.get("metadatas") or [[None] * len(ids)])[0]

        hits: list[dict[str, Any]] = []
        for doc_id, content, meta, dist in zip(ids, docs, metas, distances):
            # Cosine space: distance = 1 - cosine similarity.
            hits.append(
                {
                    "id": doc_id,
                    "content": content or "",
                    "score": 1.0 - dist,
                    "metadata": meta or {},
                }
            )
        return hits

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

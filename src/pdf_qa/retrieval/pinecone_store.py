"""Pinecone implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from typing import Any

from pinecone import Pinecone

from pdf_qa.config import settings
from pdf_qa.retrieval.base import VectorStoreBase
from pdf_qa.retrieval.models import IndexRecord

logger = logging.getLogger(__name__)

# Metadata key holding the chunk text (LangChain's PineconeStore convention).
TEXT_KEY = "text"


def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Coerce *metadata* to the value types Pinecone accepts.

    Pinecone stores ``str``/``int``/``float``/``bool`` and lists of
    strings; ``None`` values are dropped and anything else is stringified.
    """
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            flat[key] = value
        elif isinstance(value, (list, tuple)):
            flat[key] = [str(v) for v in value]
        else:
            flat[key] = str(value)
    return flat


class PineconeVectorStore(VectorStoreBase):
    """Pinecone-backed vector store.

    Parameters
    ----------
    index_name:
        Name of an existing Pinecone index.
    api_key:
        Pinecone API key.
    namespace:
        Optional namespace inside the index.
    """

    def __init__(
        self,
        index_name: str = settings.pinecone_index_name,
        *,
        api_key: str = settings.pinecone_api_key,
        namespace: str | None = None,
    ) -> None:
        super().__init__(index_name)
        self._namespace = namespace
        self._client = Pinecone(api_key=api_key)
        self._index = self._client.Index(index_name)

    def configured_dimension(self) -> int:
        return int(self._client.describe_index(self.index_name).dimension)

    def upsert(self, records: list[IndexRecord]) -> None:
        vectors = [
            {
                "id": record.id,
                "values": record.vector,
                "metadata": _flatten_metadata({**record.metadata, TEXT_KEY: record.text}),
            }
            for record in records
        ]
        kwargs: dict[str, Any] = {"vectors": vectors}
        if self._namespace:
            kwargs["namespace"] = self._namespace
        self._index.upsert(**kwargs)

    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 10,
        include_metadata: bool = True,
    ) -> list[dict[str, Any]]:
        kwargs: dict[str, Any] = {
            "vector": query_embedding,
            "top_k": k,
            "include_metadata": include_metadata,
        }
        if self._namespace:
            kwargs["namespace"] = self._namespace
        response = self._index.query(**kwargs)

        hits: list[dict[str, Any]] = []
        for match in response.matches:
            meta = dict(match.metadata or {})
            content = meta.pop(TEXT_KEY, "")
            hits.append(
                {
                    "id": match.id,
                    "content": content or "",
                    "score": match.score,
                    "metadata": meta,
                }
            )
        return hits

    def health_check(self) -> bool:
        try:
            self._client.describe_index(self.index_name)
            return True
        except Exception:
            logger.warning("Pinecone health-check failed", exc_info=True)
            return False

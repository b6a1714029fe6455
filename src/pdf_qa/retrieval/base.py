"""Abstract base class for vector-store backends.

Adding a new backend (Weaviate, Qdrant …) only requires subclassing
:class:`VectorStoreBase` and implementing the four abstract methods.
The ingestion pipeline and the query service are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pdf_qa.retrieval.models import IndexRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    index_name:
        Logical name of the index / collection.
    """

    def __init__(self, index_name: str) -> None:
        self.index_name = index_name

    @abstractmethod
    def configured_dimension(self) -> int:
        """Return the vector dimension the index was created with."""
        ...

    @abstractmethod
    def upsert(self, records: list[IndexRecord]) -> None:
        """Insert or overwrite *records* keyed by their ``id``."""
        ...

    @abstractmethod
    def similarity_search(
        self,
        query_embedding: list[float],
        *,
        k: int = 10,
        include_metadata: bool = True,
    ) -> list[dict[str, Any]]:
        """Return the top-*k* results matching *query_embedding*.

        Results are ordered by descending similarity.  Each result dict
        **must** contain at least:

        * ``"id"`` – chunk identifier
        * ``"content"`` – the stored chunk text
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – associated metadata dict (empty when
          *include_metadata* is false)
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

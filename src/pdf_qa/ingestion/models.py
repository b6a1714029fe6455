"""Domain models produced and consumed by the ingestion pipeline."""

from __future__ import annotations

import hashlib
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pdf_qa.errors import ExternalServiceError


class Chunk(BaseModel):
    """A bounded slice of a source document — the unit of retrieval.

    Attributes
    ----------
    text:
        The chunk text (at most ``chunk_size`` characters).
    source_metadata:
        Metadata inherited from the parent document (``source``, ``page``, …).
    sequence_index:
        Ordinal position of the chunk within its parent document.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    source_metadata: dict[str, Any] = Field(default_factory=dict)
    sequence_index: int = 0

    @property
    def source(self) -> str:
        return str(self.source_metadata.get("source", "unknown"))

    def record_id(self) -> str:
        """Deterministic id so re-ingesting identical content overwrites."""
        page = self.source_metadata.get("page", "")
        digest = hashlib.sha256(
            f"{self.source}|{page}|{self.sequence_index}|{self.text}".encode()
        ).hexdigest()
        return digest[:32]

    def record_metadata(self) -> dict[str, Any]:
        """Metadata stored next to the vector (source metadata + chunk index)."""
        return {**self.source_metadata, "chunk_index": self.sequence_index}


class ChunkOutcome(BaseModel):
    """Per-chunk result of the embed + upsert step."""

    record_id: str
    source: str
    sequence_index: int
    ok: bool
    error: str | None = None


class IngestionReport(BaseModel):
    """Summary returned by :func:`pdf_qa.ingestion.pipeline.ingest`.

    Distinguishes "nothing indexed" from "N of M chunks indexed".
    """

    documents_loaded: int = 0
    chunks_total: int = 0
    embedding_dimension: int | None = None
    outcomes: list[ChunkOutcome] = Field(default_factory=list)

    @property
    def chunks_indexed(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def chunks_failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)

    @property
    def failures(self) -> list[ChunkOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def summary(self) -> str:
        return (
            f"Indexed {self.chunks_indexed}/{self.chunks_total} chunks "
            f"from {self.documents_loaded} documents "
            f"({self.chunks_failed} failed, dim={self.embedding_dimension})"
        )

    def raise_for_failures(self) -> None:
        """Raise :class:`ExternalServiceError` if any chunk failed."""
        failures = self.failures
        if failures:
            first = failures[0]
            raise ExternalServiceError(
                f"{len(failures)} of {self.chunks_total} chunks failed to index; "
                f"first failure: {first.source}#{first.sequence_index}: {first.error}"
            )

"""Domain models for index records, retrieval results and citation tracking."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class IndexRecord(BaseModel):
    """One ``(vector, text, metadata)`` entry written to the vector store.

    Records are created during ingestion and never mutated afterwards;
    re-ingesting identical content reuses the same ``id``.
    """

    id: str
    vector: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class Citation(BaseModel):
    """Provenance record linking a retrieved chunk back to its source PDF.

    Attributes
    ----------
    document_id:
        The vector-store ID of the chunk (``None`` when unknown).
    source:
        File path of the PDF the chunk was cut from.
    chunk_index:
        Ordinal position of the chunk within its page.
    page:
        Zero-based page number reported by the PDF loader.
    score:
        Similarity score returned by the vector store (higher = closer).
    metadata:
        Remaining metadata stored alongside the vector.
    """

    document_id: str | None = None
    source: str = "unknown"
    chunk_index: int | None = None
    page: int | None = None
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def short_ref(self) -> str:
        """Return a compact ``[source§chunk]`` reference string."""
        chunk = self.chunk_index if self.chunk_index is not None else "?"
        return f"[{self.source}§{chunk}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its citation."""

    content: str
    citation: Citation

    @property
    def score(self) -> float | None:
        return self.citation.score

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"

"""
Retrieval — vector search and citation tracking.

This module wraps the vector store behind a clean interface so that
neither the ingestion pipeline nor the query service needs to know
which database is backing the index.

Public surface
--------------
- :class:`SemanticRetriever` — main entry point for retrieval with citations.
- :class:`VectorStoreBase` — abstract backend.
- :class:`PineconeVectorStore` — default Pinecone backend.
- :class:`ChromaVectorStore` — self-hosted Chroma backend.
- :class:`IndexRecord`, :class:`Citation`, :class:`RetrievalResult` — data models.
- :func:`get_retriever`, :func:`get_vector_store` — settings-driven factories.
"""

from pdf_qa.retrieval.base import VectorStoreBase
from pdf_qa.retrieval.models import Citation, IndexRecord, RetrievalResult
from pdf_qa.retrieval.retriever import SemanticRetriever, get_retriever, get_vector_store

__all__ = [
    "Citation",
    "ChromaVectorStore",
    "IndexRecord",
    "PineconeVectorStore",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
    "get_retriever",
    "get_vector_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import concrete backends to avoid pulling in their clients at import time."""
    if name == "ChromaVectorStore":
        from pdf_qa.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    if name == "PineconeVectorStore":
        from pdf_qa.retrieval.pinecone_store import PineconeVectorStore

        return PineconeVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""
Ingestion — PDF loading, chunking, and embedding into the vector store.

This module is the offline half of the system: it turns the PDF corpus
into ``(vector, text, metadata)`` records in the vector index that the
query service searches.  Run it with ``pdf-qa-ingest`` or
``python -m pdf_qa.ingestion.pipeline``.
"""

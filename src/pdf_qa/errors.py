"""Exception hierarchy shared by the ingestion pipeline and the query service."""

from __future__ import annotations


class PdfQaError(Exception):
    """Base class for every error raised by :mod:`pdf_qa`."""


class ConfigurationError(PdfQaError):
    """The deployment is mis-configured (missing credentials, dimension mismatch).

    Always fatal: raised before any write to the vector store or any query.
    """


class ExternalServiceError(PdfQaError):
    """A collaborator (loader, embedder, vector store, LLM) failed terminally."""


class ValidationError(PdfQaError):
    """A request is missing a required field.  Surfaced as a client error."""

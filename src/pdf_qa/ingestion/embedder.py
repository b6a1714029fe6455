"""Embedding provider selection and dimension probing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdf_qa.config import settings
from pdf_qa.resilience import RetryPolicy, call_with_retry

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

PROBE_TEXT = "dimension probe"


def get_embeddings() -> Embeddings:
    """Return the configured embedding function.

    ``openai`` uses the hosted OpenAI embedding API (needs ``OPENAI_API_KEY``);
    ``huggingface`` runs a sentence-transformer locally.
    """
    if settings.embedding_provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info("Using local HuggingFace embeddings: %s", settings.embedding_model)
        return HuggingFaceEmbeddings(model_name=settings.embedding_model)

    from langchain_openai import OpenAIEmbeddings

    return OpenAIEmbeddings(model=settings.embedding_model, api_key=settings.openai_api_key)


def embed_text(embeddings: Embeddings, text: str, *, policy: RetryPolicy | None = None) -> list[float]:
    """Embed a single string under the timeout/retry policy."""
    return call_with_retry(
        lambda: embeddings.embed_query(text),
        description="embedding request",
        policy=policy,
    )


def probe_dimension(embeddings: Embeddings, *, policy: RetryPolicy | None = None) -> int:
    """Embed a fixed probe string and return the provider's output dimension."""
    return len(embed_text(embeddings, PROBE_TEXT, policy=policy))

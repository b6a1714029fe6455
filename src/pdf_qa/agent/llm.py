"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``LLM_BASE_URL`` to e.g. a vLLM
   server exposing ``/v1/chat/completions``; ``ChatOpenAI`` works
   unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_openai import ChatOpenAI

from pdf_qa.config import settings
from pdf_qa.resilience import RetryPolicy, call_with_retry

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Return the configured chat model.

    When ``settings.llm_base_url`` is set the client is pointed at that
    endpoint instead of the OpenAI cloud API.  A dummy API key
    (``"EMPTY"``) is used because vLLM does not require authentication.
    Client-side retries are disabled; :func:`generate` owns retrying.
    """
    kwargs: dict[str, Any] = {
        "model": settings.llm_model_name,
        "temperature": settings.llm_temperature if temperature is None else temperature,
        "max_retries": 0,
    }

    if settings.llm_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.llm_base_url)
        kwargs["base_url"] = settings.llm_base_url
        # vLLM doesn't need a real key; LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    else:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)


def generate(
    llm: BaseChatModel,
    messages: list[BaseMessage],
    *,
    description: str = "chat completion",
    policy: RetryPolicy | None = None,
) -> str:
    """Invoke *llm* on *messages* and return the reply text, stripped."""
    response = call_with_retry(lambda: llm.invoke(messages), description=description, policy=policy)
    content = response.content
    if isinstance(content, list):
        # Content blocks: keep the text parts.
        content = "".join(
            block if isinstance(block, str) else str(block.get("text", ""))
            for block in content
        )
    return str(content).strip()

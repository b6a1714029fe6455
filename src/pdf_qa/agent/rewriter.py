"""Conversational query rewriting.

A follow-up like "what about its latency?" retrieves poorly on its own.
:func:`rewrite_query` asks the LLM to fold the conversation into a
standalone question before it is embedded.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pdf_qa.agent.llm import generate
from pdf_qa.agent.prompts import build_rewrite_prompt

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from pdf_qa.agent.history import ConversationTurn
    from pdf_qa.resilience import RetryPolicy

logger = logging.getLogger(__name__)


def rewrite_query(
    history: Sequence[ConversationTurn],
    question: str,
    *,
    llm: BaseChatModel,
    policy: RetryPolicy | None = None,
) -> str:
    """Return *question* rewritten as a standalone question.

    *history* is only read, never modified.  Without prior turns the
    question is already standalone and is returned as is, without an LLM
    call.  LLM failures propagate as
    :class:`~pdf_qa.errors.ExternalServiceError`.
    """
    if not history:
        return question

    rewritten = generate(
        llm,
        build_rewrite_prompt(history, question),
        description="query rewrite",
        policy=policy,
    )
    if not rewritten:
        logger.warning("Query rewrite returned no text; using the original question")
        return question
    logger.debug("Rewrote %r → %r", question, rewritten)
    return rewritten

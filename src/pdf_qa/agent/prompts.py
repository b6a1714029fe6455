"""Prompt templates for query rewriting and grounded answering.

Every LLM call uses a prompt from this module.  Keeping prompts in one
place makes them easy to audit, version, and A/B test.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

from pdf_qa.agent.history import to_messages

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from pdf_qa.agent.history import ConversationTurn
    from pdf_qa.retrieval.models import RetrievalResult

logger = logging.getLogger(__name__)

REFUSAL_MESSAGE = "I could not find the answer in the provided document."

CONTEXT_SEPARATOR = "\n\n---\n\n"

# ── 1. Query rewriting ────────────────────────────────────────────────

REWRITE_SYSTEM = """\
You are a query rewriting expert. Based on the provided chat history, rephrase \
the "Follow Up user Question" into a complete, standalone question that can be \
understood without the chat history.
Only output the rewritten question and nothing else.
"""


def build_rewrite_prompt(history: Sequence[ConversationTurn], question: str) -> list[BaseMessage]:
    """Build the prompt for the ``rewrite_query`` step.

    The follow-up question is the final user message; the history is
    passed as prior turns and is not modified.
    """
    return [
        SystemMessage(content=REWRITE_SYSTEM),
        *to_messages(history),
        HumanMessage(content=question),
    ]


# ── 2. Grounded answering ─────────────────────────────────────────────

ANSWER_SYSTEM = """\
You have to behave like a {persona}.
You will be given a context of relevant information and a user question.
Your task is to answer the user's question based ONLY on the provided context.
If the answer is not in the context, you must say "{refusal}"
Keep your answers clear, concise, and educational.

Context: {context}
"""


def build_answer_system(context: str, persona: str = "documentation QA expert") -> str:
    return ANSWER_SYSTEM.format(persona=persona, refusal=REFUSAL_MESSAGE, context=context)


def build_answer_prompt(
    history: Sequence[ConversationTurn],
    question: str,
    context: str,
    persona: str = "documentation QA expert",
) -> list[BaseMessage]:
    """Assemble the messages for the grounded answer call.

    Parameters
    ----------
    history:
        Prior turns of the session.
    question:
        The standalone (rewritten) question, sent as the last user turn.
    context:
        The assembled answer context.
    persona:
        Role the model is asked to play.
    """
    return [
        SystemMessage(content=build_answer_system(context, persona)),
        *to_messages(history),
        HumanMessage(content=question),
    ]


# ── Helpers ────────────────────────────────────────────────────────────


def format_context(results: Sequence[RetrievalResult]) -> str:
    """Join result texts in rank order with :data:`CONTEXT_SEPARATOR`.

    Texts that already contain the separator would blur chunk
    boundaries; they are logged, not altered.
    """
    for result in results:
        if CONTEXT_SEPARATOR in result.content:
            logger.warning(
                "Retrieved chunk %s contains the context separator; "
                "chunk boundaries in the prompt are ambiguous",
                result.citation.short_ref(),
            )
    return CONTEXT_SEPARATOR.join(r.content for r in results)

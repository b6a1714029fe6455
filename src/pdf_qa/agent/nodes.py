"""Graph nodes — each function is one step in the question-answering workflow.

Node contract
-------------
* Accepts the full :class:`QAState` dict.
* Returns a *partial* dict with **only the keys that changed**.
* Never touches the session history; the service records the exchange
  once the whole graph has succeeded.
"""

from __future__ import annotations

import logging
from typing import Any

from pdf_qa.agent.llm import generate as generate_text
from pdf_qa.agent.llm import get_llm
from pdf_qa.agent.prompts import REFUSAL_MESSAGE, build_answer_prompt, format_context
from pdf_qa.agent.rewriter import rewrite_query as rewrite
from pdf_qa.agent.state import QAState
from pdf_qa.config import settings
from pdf_qa.retrieval.retriever import get_retriever

logger = logging.getLogger(__name__)


# ── 1. REWRITE ────────────────────────────────────────────────────────


def rewrite_query(state: QAState) -> dict[str, Any]:
    """Turn the follow-up question into a standalone question."""
    standalone = rewrite(state["history"], state["question"], llm=get_llm())
    return {"standalone_question": standalone}


# ── 2. RETRIEVE ───────────────────────────────────────────────────────


def retrieve(state: QAState) -> dict[str, Any]:
    """Fetch the top-k chunks for the standalone question and build the context."""
    query = state["standalone_question"]
    results = get_retriever().search(query)
    logger.info("Retrieved %d result(s) for %r", len(results), query)
    return {"results": results, "context": format_context(results)}


# ── 3. GENERATE ───────────────────────────────────────────────────────


def generate(state: QAState) -> dict[str, Any]:
    """Answer the standalone question strictly from the retrieved context."""
    messages = build_answer_prompt(
        state["history"],
        state["standalone_question"],
        state["context"],
        persona=settings.assistant_persona,
    )
    answer = generate_text(get_llm(), messages, description="answer generation")
    return {"answer": answer, "refused": False}


# ── 4. REFUSE ─────────────────────────────────────────────────────────


def refuse(state: QAState) -> dict[str, Any]:
    """Return the fixed refusal when retrieval found nothing relevant."""
    logger.info("No relevant context for %r; refusing", state["standalone_question"])
    return {"answer": REFUSAL_MESSAGE, "refused": True}


# ── 5. ROUTING (conditional edge) ─────────────────────────────────────


def route_after_retrieval(state: QAState) -> str:
    """Conditional edge after ``retrieve``.

    Returns
    -------
    str
        ``"generate"`` when at least one result survived the score
        threshold, ``"refuse"`` otherwise.
    """
    if state.get("results"):
        return "generate"
    return "refuse"

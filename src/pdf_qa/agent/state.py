"""Workflow state definition — shared across all graph nodes.

The state is the *single source of truth* that flows through every node
of the question-answering graph for one request.  Each field is
documented so that new nodes can be added without guessing what data is
available.
"""

from __future__ import annotations

from typing import TypedDict

from pdf_qa.agent.history import ConversationTurn
from pdf_qa.retrieval.models import RetrievalResult


class QAState(TypedDict):
    """Typed state that flows through the query-answering graph.

    Attributes
    ----------
    question:
        The user's latest question, as received.
    history:
        Snapshot of the session's prior turns.  Read-only: the graph never
        writes to the session; the service records the exchange afterwards.
    standalone_question:
        The question rewritten to be self-contained (``rewrite_query`` node).
    results:
        Ranked retrieval results above the score threshold (``retrieve`` node).
    context:
        Result texts joined with the context separator, in rank order.
    answer:
        The final answer, or the refusal message when nothing was retrieved.
    refused:
        ``True`` when the answer is the refusal produced without an LLM call.
    """

    question: str
    history: tuple[ConversationTurn, ...]
    standalone_question: str
    results: list[RetrievalResult]
    context: str
    answer: str
    refused: bool

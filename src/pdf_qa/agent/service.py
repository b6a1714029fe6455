"""Query service — the entry point that answers one question for one session."""

from __future__ import annotations

import logging
from typing import Any

from pdf_qa.agent.graph import build_graph, create_initial_state
from pdf_qa.agent.history import ConversationHistory
from pdf_qa.errors import ExternalServiceError, PdfQaError, ValidationError

logger = logging.getLogger(__name__)


class QueryService:
    """Answer questions against the indexed corpus, one session at a time.

    Parameters
    ----------
    graph:
        Compiled workflow; defaults to :func:`~pdf_qa.agent.graph.build_graph`.
    """

    def __init__(self, graph: Any = None) -> None:
        self._graph = graph if graph is not None else build_graph()

    def answer(self, history: ConversationHistory, question: str | None) -> str:
        """Answer *question* in the context of *history*.

        On success exactly two turns are appended to *history*: the
        standalone question (user) followed by the answer (model).  On
        failure *history* is left untouched.

        Raises
        ------
        ValidationError
            When *question* is missing or blank.
        ExternalServiceError
            When a collaborator fails terminally.
        """
        if question is None or not question.strip():
            raise ValidationError("Question is required")

        with history.lock:
            state = create_initial_state(question, history.snapshot())
            try:
                result = self._graph.invoke(state)
            except PdfQaError:
                raise
            except Exception as exc:
                raise ExternalServiceError(f"Failed to answer question: {exc}") from exc

            history.record_exchange(result["standalone_question"], result["answer"])

        return result["answer"]

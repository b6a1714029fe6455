"""
Agent — the online question-answering workflow built with LangGraph.

A follow-up question is rewritten into a standalone question, used to
retrieve context from the vector index, and answered strictly from that
context.  Conversation state is scoped to a session and passed in
explicitly on every call.

Public API
----------
- :class:`QueryService` — answer a question for a session.
- :func:`rewrite_query` — pure follow-up → standalone rewriting.
- :func:`build_graph` — compile the workflow.
- :func:`create_initial_state` — bootstrap the state dict for ``graph.invoke()``.
- :class:`ConversationHistory`, :class:`ConversationTurn` — session state.
"""

from pdf_qa.agent.graph import build_graph, create_initial_state
from pdf_qa.agent.history import ConversationHistory, ConversationTurn
from pdf_qa.agent.rewriter import rewrite_query
from pdf_qa.agent.service import QueryService
from pdf_qa.agent.state import QAState

__all__ = [
    "ConversationHistory",
    "ConversationTurn",
    "QAState",
    "QueryService",
    "build_graph",
    "create_initial_state",
    "rewrite_query",
]

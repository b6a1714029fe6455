"""LangGraph graph definition — the retrieval-augmented answering workflow.

This module wires the nodes defined in :mod:`pdf_qa.agent.nodes` into a
compiled :class:`StateGraph`:

1. **Rewrite** the follow-up question into a standalone question.
2. **Retrieve** the top-k chunks and assemble the answer context.
3. **Generate** an answer grounded in that context — or **refuse** with
   the fixed message when nothing relevant was retrieved.

The graph can be tested locally without any external service by
patching ``get_llm`` / ``get_retriever`` in :mod:`pdf_qa.agent.nodes`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from langgraph.graph import END, StateGraph

from pdf_qa.agent.history import ConversationTurn
from pdf_qa.agent.nodes import generate, refuse, retrieve, rewrite_query, route_after_retrieval
from pdf_qa.agent.state import QAState


def build_graph() -> Any:
    """Construct and return the compiled LangGraph workflow.

    Graph topology::

             [ START ]
                 ▼
         ┌───────────────┐
         │ rewrite_query │
         └───────┬───────┘
                 ▼
         ┌───────────────┐
         │   retrieve    │
         └───────┬───────┘
        results  │  no results
         ┌───────┴───────┐
         ▼               ▼
     ┌──────────┐   ┌──────────┐
     │ generate │   │  refuse  │
     └────┬─────┘   └────┬─────┘
          └──────┬───────┘
                 ▼
              [ END ]

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """
    workflow = StateGraph(QAState)

    # -- Nodes ---------------------------------------------------------------
    workflow.add_node("rewrite_query", rewrite_query)
    workflow.add_node("retrieve", retrieve)
    workflow.add_node("generate", generate)
    workflow.add_node("refuse", refuse)

    # -- Edges ---------------------------------------------------------------
    workflow.set_entry_point("rewrite_query")
    workflow.add_edge("rewrite_query", "retrieve")
    workflow.add_conditional_edges(
        "retrieve",
        route_after_retrieval,
        {
            "generate": "generate",
            "refuse": "refuse",
        },
    )
    workflow.add_edge("generate", END)
    workflow.add_edge("refuse", END)

    return workflow.compile()


# ---------------------------------------------------------------------------
# Convenience helpers
# ---------------------------------------------------------------------------


def create_initial_state(
    question: str,
    history: Sequence[ConversationTurn] = (),
) -> dict[str, Any]:
    """Build the initial state dict for ``graph.invoke()``.

    Usage::

        graph = build_graph()
        state = create_initial_state("What platforms does the SDK support?")
        result = graph.invoke(state)
        print(result["answer"])
    """
    return {
        "question": question,
        "history": tuple(history),
        "standalone_question": question,
        "results": [],
        "context": "",
        "answer": "",
        "refused": False,
    }

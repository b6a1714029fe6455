"""Unit tests for the question-answering workflow.

All tests run **without** an LLM, embedding API, or vector database by
patching ``get_llm`` / ``get_retriever`` in :mod:`pdf_qa.agent.nodes`.
The suite validates:

- Prompt construction (rewrite, grounded answer, context assembly)
- Query rewriting purity
- Individual node logic (rewrite_query, retrieve, generate, refuse)
- Conditional routing
- Graph compilation and end-to-end invocation
"""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from pdf_qa.agent.graph import build_graph, create_initial_state
from pdf_qa.agent.history import ConversationHistory, ConversationTurn
from pdf_qa.agent.nodes import generate, refuse, retrieve, rewrite_query, route_after_retrieval
from pdf_qa.agent.prompts import (
    CONTEXT_SEPARATOR,
    REFUSAL_MESSAGE,
    build_answer_prompt,
    build_rewrite_prompt,
    format_context,
)
from pdf_qa.agent.rewriter import rewrite_query as rewrite
from pdf_qa.errors import ExternalServiceError
from pdf_qa.resilience import RetryPolicy
from pdf_qa.retrieval.models import Citation, RetrievalResult

NO_RETRY = RetryPolicy(attempts=1, timeout_seconds=None, backoff_seconds=0.0)


# ── Fixtures & helpers ─────────────────────────────────────────────────


def _make_results(*texts: str) -> list[RetrievalResult]:
    return [
        RetrievalResult(
            content=text,
            citation=Citation(source="sdk_faq.pdf", chunk_index=i, score=0.9 - i * 0.1),
        )
        for i, text in enumerate(texts)
    ]


def _history() -> tuple[ConversationTurn, ...]:
    return (
        ConversationTurn(role="user", text="What is the JioGames Ad SDK?"),
        ConversationTurn(role="model", text="It is an SDK for showing ads in games."),
    )


def _make_state(question: str = "What platforms does it support?", **overrides: Any) -> dict[str, Any]:
    base = create_initial_state(question, _history())
    base.update(overrides)
    return base


def _fake_llm_response(content: str) -> MagicMock:
    resp = MagicMock()
    resp.content = content
    return resp


def _mock_llm(*replies: str) -> MagicMock:
    llm = MagicMock()
    llm.invoke.side_effect = [_fake_llm_response(r) for r in replies]
    return llm


# ═══════════════════════════════════════════════════════════════════════
# Prompt construction
# ═══════════════════════════════════════════════════════════════════════


class TestPrompts:
    def test_rewrite_prompt_ends_with_follow_up(self) -> None:
        msgs = build_rewrite_prompt(_history(), "and its latency?")
        assert isinstance(msgs[0], SystemMessage)
        assert "standalone" in msgs[0].content
        assert isinstance(msgs[1], HumanMessage)
        assert isinstance(msgs[2], AIMessage)
        assert msgs[-1] == HumanMessage(content="and its latency?")

    def test_answer_prompt_grounds_in_context(self) -> None:
        msgs = build_answer_prompt(_history(), "Which platforms?", "Android and iOS.", persona="Jio Games QA expert")
        system = msgs[0].content
        assert "Context: Android and iOS." in system
        assert REFUSAL_MESSAGE in system
        assert "ONLY" in system
        assert "Jio Games QA expert" in system
        assert "concise" in system and "educational" in system
        assert msgs[-1] == HumanMessage(content="Which platforms?")
        assert len(msgs) == 4

    def test_format_context_keeps_rank_order(self) -> None:
        context = format_context(_make_results("first", "second", "third"))
        assert context == f"first{CONTEXT_SEPARATOR}second{CONTEXT_SEPARATOR}third"

    def test_format_context_empty(self) -> None:
        assert format_context([]) == ""

    def test_separator_inside_chunk_is_flagged_not_rewritten(self, caplog: pytest.LogCaptureFixture) -> None:
        tricky = f"table row{CONTEXT_SEPARATOR}next row"
        with caplog.at_level(logging.WARNING, logger="pdf_qa.agent.prompts"):
            context = format_context(_make_results(tricky))
        assert context == tricky
        assert "context separator" in caplog.text


# ═══════════════════════════════════════════════════════════════════════
# Query rewriting
# ═══════════════════════════════════════════════════════════════════════


class TestRewriteQuery:
    def test_empty_history_passes_question_through(self) -> None:
        llm = MagicMock()
        assert rewrite((), "What platforms does the SDK support?", llm=llm) == (
            "What platforms does the SDK support?"
        )
        llm.invoke.assert_not_called()

    def test_uses_history_and_strips_output(self) -> None:
        llm = _mock_llm("  What platforms does the JioGames Ad SDK support?\n")
        result = rewrite(_history(), "What platforms does it support?", llm=llm, policy=NO_RETRY)
        assert result == "What platforms does the JioGames Ad SDK support?"
        sent = llm.invoke.call_args.args[0]
        assert sent[-1].content == "What platforms does it support?"
        assert any(m.content == "What is the JioGames Ad SDK?" for m in sent)

    def test_history_unchanged_on_success(self) -> None:
        history = ConversationHistory(_history())
        before = history.snapshot()
        rewrite(history.snapshot(), "and iOS?", llm=_mock_llm("Does the SDK support iOS?"), policy=NO_RETRY)
        assert history.snapshot() == before
        assert len(history) == 2

    def test_history_unchanged_on_failure(self) -> None:
        history = ConversationHistory(_history())
        before = history.snapshot()
        llm = MagicMock()
        llm.invoke.side_effect = ConnectionError("LLM down")
        with pytest.raises(ExternalServiceError):
            rewrite(history.snapshot(), "and iOS?", llm=llm, policy=NO_RETRY)
        assert history.snapshot() == before

    def test_blank_rewrite_falls_back_to_question(self) -> None:
        assert rewrite(_history(), "and iOS?", llm=_mock_llm("   "), policy=NO_RETRY) == "and iOS?"


# ═══════════════════════════════════════════════════════════════════════
# Nodes
# ═══════════════════════════════════════════════════════════════════════


class TestNodes:
    def test_rewrite_node_sets_standalone_question(self) -> None:
        with patch("pdf_qa.agent.nodes.get_llm", return_value=_mock_llm("Which platforms does the SDK support?")):
            result = rewrite_query(_make_state())
        assert result == {"standalone_question": "Which platforms does the SDK support?"}

    def test_retrieve_node_builds_context(self) -> None:
        retriever = MagicMock()
        retriever.search.return_value = _make_results("Android 5+", "iOS 12+")
        state = _make_state(standalone_question="Which platforms does the SDK support?")
        with patch("pdf_qa.agent.nodes.get_retriever", return_value=retriever):
            result = retrieve(state)
        retriever.search.assert_called_once_with("Which platforms does the SDK support?")
        assert len(result["results"]) == 2
        assert result["context"] == f"Android 5+{CONTEXT_SEPARATOR}iOS 12+"

    def test_generate_node_sends_history_and_context(self) -> None:
        llm = _mock_llm("It supports Android and iOS.")
        state = _make_state(
            standalone_question="Which platforms does the SDK support?",
            results=_make_results("Android 5+", "iOS 12+"),
            context="Android 5+ --- iOS 12+",
        )
        with patch("pdf_qa.agent.nodes.get_llm", return_value=llm):
            result = generate(state)
        assert result == {"answer": "It supports Android and iOS.", "refused": False}
        sent = llm.invoke.call_args.args[0]
        assert "Android 5+ --- iOS 12+" in sent[0].content
        assert [type(m) for m in sent[1:]] == [HumanMessage, AIMessage, HumanMessage]
        assert sent[-1].content == "Which platforms does the SDK support?"

    def test_refuse_node_returns_fixed_message(self) -> None:
        assert refuse(_make_state()) == {"answer": REFUSAL_MESSAGE, "refused": True}


class TestRouting:
    def test_routes_to_generate_with_results(self) -> None:
        assert route_after_retrieval(_make_state(results=_make_results("x"))) == "generate"

    def test_routes_to_refuse_without_results(self) -> None:
        assert route_after_retrieval(_make_state(results=[])) == "refuse"


# ═══════════════════════════════════════════════════════════════════════
# Graph
# ═══════════════════════════════════════════════════════════════════════


class TestGraphCompilation:
    def test_graph_compiles(self) -> None:
        assert build_graph() is not None

    def test_graph_has_expected_nodes(self) -> None:
        node_names = set(build_graph().get_graph().nodes.keys())
        for expected in ("rewrite_query", "retrieve", "generate", "refuse"):
            assert expected in node_names, f"Missing node: {expected}"

    def test_initial_state_defaults(self) -> None:
        state = create_initial_state("q")
        assert state["history"] == ()
        assert state["standalone_question"] == "q"
        assert state["refused"] is False


class TestEndToEnd:
    def test_full_invocation(self) -> None:
        llm = _mock_llm(
            "What platforms does the JioGames Ad SDK support?",
            "The SDK supports Android and iOS.",
        )
        retriever = MagicMock()
        retriever.search.return_value = _make_results("Android 5.0+", "iOS 12+")

        with (
            patch("pdf_qa.agent.nodes.get_llm", return_value=llm),
            patch("pdf_qa.agent.nodes.get_retriever", return_value=retriever),
        ):
            result = build_graph().invoke(_make_state())

        assert result["standalone_question"] == "What platforms does the JioGames Ad SDK support?"
        assert result["answer"] == "The SDK supports Android and iOS."
        assert result["refused"] is False
        assert llm.invoke.call_count == 2

    def test_empty_retrieval_refuses_without_llm_answer(self) -> None:
        llm = _mock_llm("What is the refund policy of the JioGames Ad SDK?")
        retriever = MagicMock()
        retriever.search.return_value = []

        with (
            patch("pdf_qa.agent.nodes.get_llm", return_value=llm),
            patch("pdf_qa.agent.nodes.get_retriever", return_value=retriever),
        ):
            result = build_graph().invoke(_make_state("what about refunds?"))

        assert result["answer"] == REFUSAL_MESSAGE
        assert result["refused"] is True
        assert llm.invoke.call_count == 1  # rewrite only

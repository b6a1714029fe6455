"""Conversation state — turns and per-session history.

A :class:`ConversationHistory` belongs to exactly one session.  Readers
work on immutable :meth:`~ConversationHistory.snapshot` tuples; the only
mutation is :meth:`~ConversationHistory.record_exchange`, which appends a
user turn and the matching model turn together so the history always
alternates user/model.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

Role = Literal["user", "model"]


@dataclass(frozen=True)
class ConversationTurn:
    """One message in a conversation.

    Attributes
    ----------
    role:
        ``"user"`` for questions, ``"model"`` for answers.
    text:
        The message text.
    """

    role: Role
    text: str

    def to_message(self) -> BaseMessage:
        """Convert to the LangChain message type the chat model expects."""
        if self.role == "user":
            return HumanMessage(content=self.text)
        return AIMessage(content=self.text)


def to_messages(turns: Iterable[ConversationTurn]) -> list[BaseMessage]:
    return [turn.to_message() for turn in turns]


class ConversationHistory:
    """Ordered, append-only conversation owned by one session.

    ``lock`` is re-entrant and held by the query service for the whole of
    a request, so concurrent requests on the same session run one after
    another and never split a question from its answer.
    """

    def __init__(self, turns: Sequence[ConversationTurn] = ()) -> None:
        self._turns: list[ConversationTurn] = list(turns)
        self.lock = threading.RLock()

    def snapshot(self) -> tuple[ConversationTurn, ...]:
        with self.lock:
            return tuple(self._turns)

    def record_exchange(self, question: str, answer: str) -> None:
        """Append the user question and the model answer as one unit."""
        with self.lock:
            self._turns.append(ConversationTurn(role="user", text=question))
            self._turns.append(ConversationTurn(role="model", text=answer))

    def clear(self) -> None:
        with self.lock:
            self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"ConversationHistory(turns={len(self)})"

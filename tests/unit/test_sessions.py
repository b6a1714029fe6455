"""Unit tests for the in-memory session store."""

from __future__ import annotations

import pytest

from pdf_qa.serving.sessions import SessionStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


class TestSessionStore:
    def test_new_session_gets_fresh_id_and_empty_history(self) -> None:
        store = SessionStore()
        session_id, history = store.get_or_create()
        assert session_id
        assert len(history) == 0
        assert session_id in store

    def test_known_id_returns_same_history(self) -> None:
        store = SessionStore()
        session_id, history = store.get_or_create()
        history.record_exchange("q", "a")

        same_id, same_history = store.get_or_create(session_id)
        assert same_id == session_id
        assert same_history is history
        assert len(store) == 1

    def test_unknown_id_starts_new_session(self) -> None:
        store = SessionStore()
        session_id, _ = store.get_or_create("not-a-session")
        assert session_id != "not-a-session"
        assert "not-a-session" not in store

    def test_ids_are_unique(self) -> None:
        store = SessionStore()
        ids = {store.get_or_create()[0] for _ in range(50)}
        assert len(ids) == 50

    def test_evict(self) -> None:
        store = SessionStore()
        session_id, _ = store.get_or_create()
        assert store.evict(session_id) is True
        assert store.evict(session_id) is False
        assert session_id not in store

    def test_idle_sessions_expire(self, clock: FakeClock) -> None:
        store = SessionStore(ttl_seconds=60, clock=clock)
        session_id, history = store.get_or_create()
        history.record_exchange("q", "a")

        clock.advance(61)
        new_id, new_history = store.get_or_create(session_id)

        assert new_id != session_id
        assert len(new_history) == 0

    def test_activity_keeps_session_alive(self, clock: FakeClock) -> None:
        store = SessionStore(ttl_seconds=60, clock=clock)
        session_id, _ = store.get_or_create()
        for _ in range(3):
            clock.advance(45)
            assert store.get_or_create(session_id)[0] == session_id

    def test_purge_expired_counts(self, clock: FakeClock) -> None:
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.get_or_create()
        store.get_or_create()
        clock.advance(11)
        store_id, _ = store.get_or_create()
        assert len(store) == 1
        clock.advance(11)
        assert store.purge_expired() == 1
        assert store_id not in store

    def test_least_recently_used_session_evicted_at_capacity(self, clock: FakeClock) -> None:
        store = SessionStore(max_sessions=2, clock=clock)
        first, _ = store.get_or_create()
        clock.advance(1)
        second, _ = store.get_or_create()
        clock.advance(1)
        store.get_or_create(first)  # touch
        clock.advance(1)
        third, _ = store.get_or_create()

        assert first in store
        assert third in store
        assert second not in store
        assert len(store) == 2

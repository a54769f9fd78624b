"""
Tests for the session store.
"""

import pytest

from jarvis_agent.models import SessionSnapshot, Turn
from jarvis_agent.session import SessionStore


class TestSessionStore:

    @pytest.fixture
    def store(self):
        return SessionStore("Hello, I am your personal AI assistant.")

    def test_starts_with_seed_model_turn(self, store):
        assert store.turns == (Turn(role="model", text="Hello, I am your personal AI assistant."),)
        assert len(store) == 1
        assert store.version == 0

    def test_append_preserves_order_and_never_empties(self, store):
        texts = ["one", "two", "three", "four"]
        for i, text in enumerate(texts):
            store.append(Turn(role="user" if i % 2 == 0 else "model", text=text))
            assert len(store) == i + 2

        assert [turn.text for turn in store][1:] == texts

    def test_consecutive_same_role_turns_are_legal(self, store):
        store.append(Turn(role="model", text="fallback"))
        store.append(Turn(role="model", text="another"))
        assert [turn.role for turn in store] == ["model", "model", "model"]

    def test_snapshot_is_isolated_from_later_appends(self, store):
        store.append(Turn(role="user", text="hi"))
        snapshot = store.snapshot()
        store.append(Turn(role="model", text="hello"))

        assert isinstance(snapshot, SessionSnapshot)
        assert len(snapshot.turns) == 2
        assert len(store) == 3

    def test_clear_leaves_single_model_turn_and_bumps_version(self, store):
        store.append(Turn(role="user", text="hi"))
        store.clear("Chat history cleared. How can I help you now?")

        assert store.turns == (Turn(role="model", text="Chat history cleared. How can I help you now?"),)
        assert store.version == 1

    def test_snapshot_contents_normalize_roles(self, store):
        store.append(Turn(role="user", text="hi"))
        contents = store.snapshot().as_contents()

        assert contents == [
            {"role": "model", "parts": [{"text": "Hello, I am your personal AI assistant."}]},
            {"role": "user", "parts": [{"text": "hi"}]},
        ]

    def test_non_model_roles_are_sent_as_user(self):
        turn = Turn(role="system", text="be brief")  # type: ignore[arg-type]
        assert turn.as_content()["role"] == "user"

    def test_subscribers_see_every_change(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda turns: seen.append(len(turns)))

        store.append(Turn(role="user", text="hi"))
        store.clear("fresh")
        unsubscribe()
        store.append(Turn(role="user", text="ignored"))

        assert seen == [2, 1]

    def test_failing_subscriber_does_not_break_append(self, store):
        def explode(turns):
            raise RuntimeError("render failed")

        store.subscribe(explode)
        store.append(Turn(role="user", text="hi"))
        assert len(store) == 2

"""Tests for the conversation history log."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from agent_memory.core.schemas_memory import TurnInput
from agent_memory.db.conversation_history import (
    append_turn,
    append_turns,
    create_session_id,
    recent_turns,
)
from agent_memory.db.supabase_client import to_timestamp, utc_now


def _turn(role, content):
    return TurnInput(role=role, content=content)


class TestAppend:
    def test_append_turn_stores_scoped_row(self, fake_supabase, workspace_id):
        session = create_session_id()

        turn = append_turn(workspace_id, "chief_of_staff", session, _turn("user", "Hello"))

        assert turn.id
        assert turn.session_id == session
        assert turn.role == "user"
        assert turn.metadata == {}
        stored = fake_supabase.rows("conversation_history")
        assert len(stored) == 1
        assert stored[0]["workspace_id"] == workspace_id
        assert stored[0]["agent_type"] == "chief_of_staff"

    def test_append_turns_writes_exchange(self, fake_supabase, workspace_id):
        session = create_session_id()

        count = append_turns(
            workspace_id,
            "research",
            session,
            [_turn("user", "Find grants"), _turn("assistant", "Here are three")],
            user_id="user-1",
        )

        assert count == 2
        rows = fake_supabase.rows("conversation_history")
        assert [r["role"] for r in rows] == ["user", "assistant"]
        assert all(r["user_id"] == "user-1" for r in rows)

    def test_append_turns_empty_is_noop(self, fake_supabase, workspace_id):
        assert append_turns(workspace_id, "research", create_session_id(), []) == 0
        assert fake_supabase.calls == []

    def test_append_turn_propagates_storage_error(self, fake_supabase, workspace_id):
        fake_supabase.fail("conversation_history")

        with pytest.raises(RuntimeError):
            append_turn(workspace_id, "research", create_session_id(), _turn("user", "Hi"))

    def test_session_ids_are_unique(self):
        assert create_session_id() != create_session_id()


class TestRecentTurns:
    def test_returns_turns_in_creation_order(self, fake_supabase, workspace_id):
        session = create_session_id()
        for i in range(4):
            append_turn(workspace_id, "chief_of_staff", session, _turn("user", f"message {i}"))

        turns = recent_turns(workspace_id, "chief_of_staff")

        assert [t.content for t in turns] == [f"message {i}" for i in range(4)]

    def test_limit_keeps_newest_turns(self, fake_supabase, workspace_id):
        session = create_session_id()
        for i in range(10):
            append_turn(workspace_id, "chief_of_staff", session, _turn("user", f"message {i}"))

        turns = recent_turns(workspace_id, "chief_of_staff", limit=3)

        assert [t.content for t in turns] == ["message 7", "message 8", "message 9"]

    def test_excludes_turns_outside_window(self, fake_supabase, workspace_id):
        old = to_timestamp(utc_now() - timedelta(days=40))
        fake_supabase.seed(
            "conversation_history",
            [
                {
                    "workspace_id": workspace_id,
                    "agent_type": "chief_of_staff",
                    "session_id": "s-old",
                    "role": "user",
                    "content": "ancient",
                    "created_at": old,
                }
            ],
        )
        append_turn(workspace_id, "chief_of_staff", "s-new", _turn("user", "fresh"))

        turns = recent_turns(workspace_id, "chief_of_staff", days_back=30)

        assert [t.content for t in turns] == ["fresh"]

    def test_scoped_by_workspace_agent_and_session(self, fake_supabase, workspace_id):
        append_turn(workspace_id, "chief_of_staff", "s1", _turn("user", "cos s1"))
        append_turn(workspace_id, "chief_of_staff", "s2", _turn("user", "cos s2"))
        append_turn(workspace_id, "research", "s1", _turn("user", "research"))
        append_turn("other-workspace", "chief_of_staff", "s1", _turn("user", "elsewhere"))

        all_sessions = recent_turns(workspace_id, "chief_of_staff")
        one_session = recent_turns(workspace_id, "chief_of_staff", session_id="s2")

        assert [t.content for t in all_sessions] == ["cos s1", "cos s2"]
        assert [t.content for t in one_session] == ["cos s2"]

    def test_zero_limit_returns_empty(self, fake_supabase, workspace_id):
        append_turn(workspace_id, "chief_of_staff", "s1", _turn("user", "hi"))

        assert recent_turns(workspace_id, "chief_of_staff", limit=0) == []

    def test_read_failure_returns_empty(self, fake_supabase, workspace_id):
        fake_supabase.fail("conversation_history")

        assert recent_turns(workspace_id, "chief_of_staff") == []


@patch("agent_memory.db.conversation_history.get_supabase")
def test_recent_turns_query_shape(mock_get_supabase):
    """Newest-first fetch with the caller's limit, reversed client-side."""
    mock_client = MagicMock()
    mock_get_supabase.return_value = mock_client
    query = mock_client.table.return_value.select.return_value
    query.eq.return_value = query
    query.gte.return_value = query
    query.order.return_value = query
    query.limit.return_value = query
    query.execute.return_value = MagicMock(data=[])

    recent_turns("ws-1", "research", limit=6, days_back=7)

    mock_client.table.assert_called_once_with("conversation_history")
    query.order.assert_called_once_with("created_at", desc=True)
    query.limit.assert_called_once_with(6)

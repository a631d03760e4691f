"""Tests for suggestion persistence, ranking and lifecycle."""

from datetime import timedelta

import pytest

from agent_memory.core.schemas_suggestions import SuggestionDraft
from agent_memory.db.suggestions import (
    SuggestionNotFoundError,
    SuggestionTransitionError,
    create_suggestion,
    get_suggestion,
    list_suggestions,
    recent_fingerprints,
    set_suggestion_status,
    suggestion_fingerprint,
)
from agent_memory.db.supabase_client import to_timestamp, utc_now


def _draft(title, priority="medium", **kwargs):
    return SuggestionDraft(type="reminder", title=title, content=f"{title} details", priority=priority, **kwargs)


class TestCreateSuggestion:
    def test_created_as_new_without_timestamps(self, fake_supabase, workspace_id):
        suggestion = create_suggestion(workspace_id, "system", _draft("Follow up with donor"))

        assert suggestion.status == "new"
        assert suggestion.seen_at is None
        assert suggestion.acted_at is None
        assert suggestion.dismissed_at is None
        assert suggestion.suggestion_type == "reminder"
        assert suggestion.fingerprint == suggestion_fingerprint(workspace_id, "Follow up with donor", None)

    def test_storage_error_propagates(self, fake_supabase, workspace_id):
        fake_supabase.fail("agent_suggestions")

        with pytest.raises(RuntimeError):
            create_suggestion(workspace_id, "system", _draft("x"))


class TestListSuggestions:
    def test_ranked_by_priority_then_recency(self, fake_supabase, workspace_id):
        create_suggestion(workspace_id, "system", _draft("low one", "low"))
        create_suggestion(workspace_id, "system", _draft("urgent one", "urgent"))
        create_suggestion(workspace_id, "system", _draft("medium old", "medium"))
        create_suggestion(workspace_id, "system", _draft("high one", "high"))
        create_suggestion(workspace_id, "system", _draft("medium new", "medium"))

        titles = [s.title for s in list_suggestions(workspace_id)]

        assert titles == ["urgent one", "high one", "medium new", "medium old", "low one"]

    def test_limit_applies_after_ranking(self, fake_supabase, workspace_id):
        for i in range(5):
            create_suggestion(workspace_id, "system", _draft(f"low {i}", "low"))
        create_suggestion(workspace_id, "system", _draft("urgent", "urgent"))

        titles = [s.title for s in list_suggestions(workspace_id, limit=2)]

        assert titles == ["urgent", "low 4"]

    def test_old_urgent_outranks_large_low_backlog(self, fake_supabase, workspace_id):
        create_suggestion(workspace_id, "system", _draft("urgent old", "urgent"))
        for i in range(200):
            create_suggestion(workspace_id, "system", _draft(f"low {i}", "low"))

        titles = [s.title for s in list_suggestions(workspace_id, limit=5)]

        assert titles == ["urgent old", "low 199", "low 198", "low 197", "low 196"]

    def test_priority_rank_stored_with_row(self, fake_supabase, workspace_id):
        create_suggestion(workspace_id, "system", _draft("one", "high"))

        (row,) = fake_supabase.rows("agent_suggestions")
        assert row["priority_rank"] == 1

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_is_empty(self, fake_supabase, workspace_id, limit):
        create_suggestion(workspace_id, "system", _draft("a"))
        create_suggestion(workspace_id, "system", _draft("b"))

        assert list_suggestions(workspace_id, limit=limit) == []
        assert ("agent_suggestions", "select") not in fake_supabase.calls

    def test_expired_suggestions_hidden(self, fake_supabase, workspace_id):
        now = utc_now()
        create_suggestion(workspace_id, "system", _draft("expired", expires_at=now - timedelta(hours=1)))
        create_suggestion(workspace_id, "system", _draft("future", expires_at=now + timedelta(days=1)))
        create_suggestion(workspace_id, "system", _draft("forever"))

        titles = {s.title for s in list_suggestions(workspace_id)}

        assert titles == {"future", "forever"}

    def test_filters_status_and_workspace(self, fake_supabase, workspace_id):
        seen = create_suggestion(workspace_id, "system", _draft("seen one"))
        set_suggestion_status(seen.id, "seen")
        create_suggestion(workspace_id, "system", _draft("new one"))
        create_suggestion("other-workspace", "system", _draft("elsewhere"))

        assert [s.title for s in list_suggestions(workspace_id)] == ["new one"]
        assert [s.title for s in list_suggestions(workspace_id, status="seen")] == ["seen one"]

    def test_filters_agent_type(self, fake_supabase, workspace_id):
        create_suggestion(workspace_id, "system", _draft("from generator"))
        create_suggestion(workspace_id, "research", _draft("from research"))

        titles = [s.title for s in list_suggestions(workspace_id, agent_type="research")]

        assert titles == ["from research"]

    def test_read_failure_returns_empty(self, fake_supabase, workspace_id):
        fake_supabase.fail("agent_suggestions")

        assert list_suggestions(workspace_id) == []


class TestSetSuggestionStatus:
    def test_seen_then_acted_stamps_each_timestamp(self, fake_supabase, workspace_id):
        suggestion = create_suggestion(workspace_id, "system", _draft("Call the board chair"))

        seen = set_suggestion_status(suggestion.id, "seen")
        acted = set_suggestion_status(suggestion.id, "acted")

        assert seen.status == "seen"
        assert seen.seen_at is not None
        assert seen.acted_at is None
        assert acted.status == "acted"
        assert acted.acted_at is not None
        assert acted.dismissed_at is None

    def test_dismiss_from_new(self, fake_supabase, workspace_id):
        suggestion = create_suggestion(workspace_id, "system", _draft("Archive old RFP"))

        dismissed = set_suggestion_status(suggestion.id, "dismissed")

        assert dismissed.status == "dismissed"
        assert dismissed.dismissed_at is not None
        assert dismissed.seen_at is None

    @pytest.mark.parametrize("terminal", ["acted", "dismissed"])
    @pytest.mark.parametrize("target", ["seen", "acted", "dismissed"])
    def test_terminal_status_is_final(self, fake_supabase, workspace_id, terminal, target):
        suggestion = create_suggestion(workspace_id, "system", _draft("Done deal"))
        set_suggestion_status(suggestion.id, terminal)

        with pytest.raises(SuggestionTransitionError):
            set_suggestion_status(suggestion.id, target)

        assert get_suggestion(suggestion.id).status == terminal

    def test_unknown_id(self, fake_supabase):
        with pytest.raises(SuggestionNotFoundError):
            set_suggestion_status("00000000-0000-0000-0000-000000000000", "seen")

    @pytest.mark.parametrize("status", ["new", "archived", ""])
    def test_invalid_status_rejected(self, fake_supabase, workspace_id, status):
        suggestion = create_suggestion(workspace_id, "system", _draft("x"))

        with pytest.raises(ValueError):
            set_suggestion_status(suggestion.id, status)

        assert get_suggestion(suggestion.id).status == "new"


class TestFingerprints:
    def test_normalizes_case_and_whitespace(self):
        a = suggestion_fingerprint("ws", "Follow up  with Donor", "Gift lapsed")
        b = suggestion_fingerprint("ws", "follow up with donor", "  gift   lapsed ")

        assert a == b

    def test_scoped_by_workspace(self):
        assert suggestion_fingerprint("ws-a", "t", None) != suggestion_fingerprint("ws-b", "t", None)

    def test_recent_fingerprints_window(self, fake_supabase, workspace_id):
        old = to_timestamp(utc_now() - timedelta(days=10))
        fake_supabase.seed(
            "agent_suggestions",
            [{"workspace_id": workspace_id, "fingerprint": "old-print", "created_at": old}],
        )
        fresh = create_suggestion(workspace_id, "system", _draft("fresh"))

        prints = recent_fingerprints(workspace_id, window_days=7)

        assert prints == {fresh.fingerprint}

    def test_zero_window_disables(self, fake_supabase, workspace_id):
        create_suggestion(workspace_id, "system", _draft("fresh"))

        assert recent_fingerprints(workspace_id, window_days=0) == set()

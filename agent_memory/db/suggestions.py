"""Suggestion store: persistence and lifecycle of proactive suggestions.

Lifecycle: new -> seen -> acted | dismissed. ``acted`` and ``dismissed``
are terminal; each transition stamps exactly one timestamp column.
Suggestions are never physically deleted here.
"""

import hashlib
from datetime import timedelta

from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_suggestions import (
    OPEN_STATUSES,
    TRANSITION_TIMESTAMPS,
    Suggestion,
    SuggestionDraft,
)
from agent_memory.db.supabase_client import get_supabase, to_timestamp, utc_now

logger = get_logger(__name__)

TABLE = "agent_suggestions"


class SuggestionNotFoundError(ValueError):
    """Raised when a suggestion id does not exist."""


class SuggestionTransitionError(ValueError):
    """Raised when a status change would leave a terminal status."""


def suggestion_fingerprint(workspace_id: str, title: str, trigger_reason: str | None) -> str:
    """Stable identity of a suggestion for cross-run dedupe."""
    normalized = "|".join(
        [
            str(workspace_id),
            " ".join(title.lower().split()),
            " ".join((trigger_reason or "").lower().split()),
        ]
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def create_suggestion(
    workspace_id: str,
    agent_type: str,
    draft: SuggestionDraft,
) -> Suggestion:
    """
    Insert a suggestion with status ``new`` and no transition timestamps.

    Raises:
        Exception: Storage errors propagate to the caller
    """
    supabase = get_supabase()

    row = {
        "workspace_id": str(workspace_id),
        "agent_type": agent_type,
        "suggestion_type": draft.suggestion_type,
        "title": draft.title,
        "content": draft.content,
        "priority": draft.priority,
        "trigger_reason": draft.trigger_reason,
        "related_entity_type": draft.related_entity_type,
        "related_entity_id": draft.related_entity_id,
        "action_type": draft.action_type,
        "action_params": draft.action_params or {},
        "status": "new",
        "fingerprint": suggestion_fingerprint(workspace_id, draft.title, draft.trigger_reason),
        "expires_at": to_timestamp(draft.expires_at) if draft.expires_at else None,
    }

    try:
        response = supabase.table(TABLE).insert(row).execute()
    except Exception as e:
        logger.error(f"Failed to create suggestion for workspace {workspace_id}: {e}")
        raise

    return Suggestion(**response.data[0])


def list_suggestions(
    workspace_id: str,
    status: str = "new",
    limit: int = 10,
    agent_type: str | None = None,
) -> list[Suggestion]:
    """
    List unexpired suggestions in a status, ranked by priority.

    Ranking happens in the store via the generated ``priority_rank``
    column, so the limit applies after ordering.

    Args:
        workspace_id: Workspace UUID
        status: Lifecycle status to match (default "new")
        limit: Maximum suggestions to return
        agent_type: Only suggestions produced by this agent

    Returns:
        Suggestions ordered urgent > high > medium > low, then newest first
    """
    if limit <= 0:
        return []

    supabase = get_supabase()
    now = utc_now()

    try:
        query = (
            supabase.table(TABLE)
            .select("*")
            .eq("workspace_id", str(workspace_id))
            .eq("status", status)
            .or_(f'expires_at.is.null,expires_at.gt."{to_timestamp(now)}"')
        )
        if agent_type:
            query = query.eq("agent_type", agent_type)

        response = (
            query.order("priority_rank")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        logger.warning(f"Failed to list suggestions for workspace {workspace_id}: {e}")
        return []

    suggestions = [Suggestion(**row) for row in response.data or []]
    # The store filters expiry too; re-check against the same clock
    return [s for s in suggestions if not s.is_expired(now)]


def get_suggestion(suggestion_id: str) -> Suggestion | None:
    """Get a suggestion by id."""
    supabase = get_supabase()

    response = (
        supabase.table(TABLE)
        .select("*")
        .eq("id", str(suggestion_id))
        .maybe_single()
        .execute()
    )
    if response is None or not response.data:
        return None
    return Suggestion(**response.data)


def set_suggestion_status(suggestion_id: str, status: str) -> Suggestion:
    """
    Move a suggestion to ``seen``, ``acted`` or ``dismissed``.

    The update only matches rows still in a non-terminal status, so two
    concurrent callers cannot both leave a terminal state.

    Raises:
        ValueError: If status is not a caller-settable status
        SuggestionNotFoundError: If the suggestion does not exist
        SuggestionTransitionError: If the suggestion is already acted/dismissed
    """
    if status not in TRANSITION_TIMESTAMPS:
        raise ValueError(
            f"Invalid status: {status}. Must be one of {sorted(TRANSITION_TIMESTAMPS)}"
        )

    supabase = get_supabase()
    try:
        response = (
            supabase.table(TABLE)
            .update({"status": status, TRANSITION_TIMESTAMPS[status]: to_timestamp(utc_now())})
            .eq("id", str(suggestion_id))
            .in_("status", list(OPEN_STATUSES))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to update suggestion {suggestion_id} status: {e}")
        raise

    if response.data:
        logger.info(f"Suggestion {suggestion_id} marked {status}")
        return Suggestion(**response.data[0])

    current = get_suggestion(suggestion_id)
    if current is None:
        raise SuggestionNotFoundError(f"Suggestion not found: {suggestion_id}")

    raise SuggestionTransitionError(
        f"Suggestion {suggestion_id} is already {current.status}; cannot mark {status}"
    )


def recent_fingerprints(workspace_id: str, window_days: int) -> set[str]:
    """Fingerprints of suggestions created within the last ``window_days``."""
    if window_days <= 0:
        return set()

    supabase = get_supabase()
    cutoff = utc_now() - timedelta(days=window_days)

    try:
        response = (
            supabase.table(TABLE)
            .select("fingerprint")
            .eq("workspace_id", str(workspace_id))
            .gte("created_at", to_timestamp(cutoff))
            .execute()
        )
    except Exception as e:
        logger.warning(f"Failed to load suggestion fingerprints for workspace {workspace_id}: {e}")
        return set()

    return {row["fingerprint"] for row in response.data or [] if row.get("fingerprint")}

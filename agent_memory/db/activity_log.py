"""User activity log: raw material for the activity-pattern suggestion signal."""

from typing import Any

from agent_memory.core.logging import get_logger
from agent_memory.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "user_activity_log"


def log_activity(
    workspace_id: str,
    activity_type: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    user_id: str | None = None,
) -> None:
    """
    Record one user activity (page_view, task_created, proposal_edited, ...).

    Raises:
        Exception: Storage errors propagate to the caller
    """
    supabase = get_supabase()

    try:
        supabase.table(TABLE).insert(
            {
                "workspace_id": str(workspace_id),
                "user_id": str(user_id) if user_id else None,
                "activity_type": activity_type,
                "entity_type": entity_type,
                "entity_id": str(entity_id) if entity_id else None,
                "metadata": metadata or {},
            }
        ).execute()
    except Exception as e:
        logger.error(f"Failed to log activity {activity_type} for workspace {workspace_id}: {e}")
        raise


def list_recent_activity(workspace_id: str, limit: int = 20) -> list[dict[str, Any]]:
    """Most recent activity rows, newest first. Empty on failure."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table(TABLE)
            .select("activity_type, entity_type, created_at")
            .eq("workspace_id", str(workspace_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []
    except Exception as e:
        logger.warning(f"Failed to list activity for workspace {workspace_id}: {e}")
        return []


def summarize_activity(rows: list[dict[str, Any]]) -> dict[str, int]:
    """
    Roll activity rows up into counts keyed by ``activity_type[_entity_type]``.

    Keys keep first-seen order, so the newest pattern is listed first.
    """
    counts: dict[str, int] = {}
    for row in rows:
        key = row.get("activity_type") or "unknown"
        if row.get("entity_type"):
            key = f"{key}_{row['entity_type']}"
        counts[key] = counts.get(key, 0) + 1
    return counts

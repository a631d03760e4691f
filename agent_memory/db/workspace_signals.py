"""Read-only queries over collections owned by other subsystems.

Tasks, opportunities (RFPs), proposals, contacts and workspaces are managed
elsewhere; the suggestion generator only reads them. A missing table or a
failed query is not an error here: each source yields an empty result.
"""

from datetime import date, timedelta
from typing import Any

from agent_memory.core.deadlines import STALE_DRAFT_DAYS
from agent_memory.core.logging import get_logger
from agent_memory.db.supabase_client import get_supabase

logger = get_logger(__name__)

OPEN_TASK_STATUSES = ["todo", "in_progress"]
OPEN_OPPORTUNITY_STATUSES = ["new", "reviewing", "pursuing"]
ACTIVE_PROPOSAL_STATUSES = ["draft", "in_progress", "review"]
ATTENTION_HEALTH = ["cold", "at_risk"]

SIGNAL_LIMIT = 10


def _fetch(source: str, workspace_id: str, build) -> list[dict[str, Any]]:
    """Run a signal query; any failure degrades to an empty source."""
    try:
        response = build(get_supabase()).execute()
        return response.data or []
    except Exception as e:
        logger.warning(f"Signal source '{source}' unavailable for workspace {workspace_id}: {e}")
        return []


def get_workspace(workspace_id: str) -> dict[str, Any] | None:
    """Workspace display fields (name, type), or None."""
    try:
        response = (
            get_supabase()
            .table("workspaces")
            .select("id, name, type")
            .eq("id", str(workspace_id))
            .maybe_single()
            .execute()
        )
    except Exception as e:
        logger.warning(f"Failed to load workspace {workspace_id}: {e}")
        return None

    if response is None or not response.data:
        return None
    return response.data


def list_overdue_tasks(workspace_id: str, today: date) -> list[dict[str, Any]]:
    """Open tasks whose due date is before today."""
    return _fetch(
        "overdue_tasks",
        workspace_id,
        lambda sb: sb.table("tasks")
        .select("id, title, due_date, priority")
        .eq("workspace_id", str(workspace_id))
        .in_("status", OPEN_TASK_STATUSES)
        .lt("due_date", today.isoformat())
        .order("due_date", desc=False)
        .limit(SIGNAL_LIMIT),
    )


def list_upcoming_tasks(workspace_id: str, today: date, days: int = 7) -> list[dict[str, Any]]:
    """Open tasks due between today and ``days`` from now, soonest first."""
    horizon = today + timedelta(days=days)
    return _fetch(
        "upcoming_tasks",
        workspace_id,
        lambda sb: sb.table("tasks")
        .select("id, title, due_date, priority")
        .eq("workspace_id", str(workspace_id))
        .in_("status", OPEN_TASK_STATUSES)
        .gte("due_date", today.isoformat())
        .lte("due_date", horizon.isoformat())
        .order("due_date", desc=False)
        .limit(SIGNAL_LIMIT),
    )


def list_opportunity_deadlines(workspace_id: str, today: date, days: int = 7) -> list[dict[str, Any]]:
    """Tracked opportunities (RFPs) with a response deadline in the next ``days``."""
    horizon = today + timedelta(days=days)
    return _fetch(
        "opportunity_deadlines",
        workspace_id,
        lambda sb: sb.table("rfps")
        .select("id, title, response_deadline, status, alignment_score")
        .eq("workspace_id", str(workspace_id))
        .in_("status", OPEN_OPPORTUNITY_STATUSES)
        .gte("response_deadline", today.isoformat())
        .lte("response_deadline", horizon.isoformat())
        .order("response_deadline", desc=False)
        .limit(SIGNAL_LIMIT),
    )


def list_active_proposals(workspace_id: str) -> list[dict[str, Any]]:
    """Proposals in a non-terminal status, earliest submission deadline first."""
    return _fetch(
        "active_proposals",
        workspace_id,
        lambda sb: sb.table("proposals")
        .select("id, title, submission_deadline, status, completion_percentage")
        .eq("workspace_id", str(workspace_id))
        .in_("status", ACTIVE_PROPOSAL_STATUSES)
        .order("submission_deadline", desc=False)
        .limit(SIGNAL_LIMIT),
    )


def list_stale_drafts(workspace_id: str, today: date) -> list[dict[str, Any]]:
    """Draft proposals created at least STALE_DRAFT_DAYS ago, oldest first."""
    cutoff = today - timedelta(days=STALE_DRAFT_DAYS)
    return _fetch(
        "stale_drafts",
        workspace_id,
        lambda sb: sb.table("proposals")
        .select("id, title, created_at")
        .eq("workspace_id", str(workspace_id))
        .eq("status", "draft")
        .lt("created_at", (cutoff + timedelta(days=1)).isoformat())
        .order("created_at", desc=False)
        .limit(SIGNAL_LIMIT),
    )


def list_contacts_needing_attention(workspace_id: str) -> list[dict[str, Any]]:
    """Contacts whose relationship health is cold or at risk."""
    return _fetch(
        "contacts_needing_attention",
        workspace_id,
        lambda sb: sb.table("contacts")
        .select("id, name, relationship_health, last_health_check, type")
        .eq("workspace_id", str(workspace_id))
        .in_("relationship_health", ATTENTION_HEALTH)
        .limit(SIGNAL_LIMIT),
    )

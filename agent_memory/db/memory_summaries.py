"""Memory summaries: durable compressions of conversation history.

Summaries are insert-only. The newest one per (workspace, agent type) is
the current summary; older rows stay for audit.
"""

from datetime import datetime

from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import MemorySummary, SummaryPayload
from agent_memory.db.supabase_client import get_supabase, to_timestamp

logger = get_logger(__name__)

TABLE = "memory_summaries"


def insert_memory_summary(
    workspace_id: str,
    agent_type: str,
    payload: SummaryPayload,
    period_start: datetime,
    period_end: datetime,
    message_count: int,
) -> MemorySummary:
    """
    Persist a new summary row.

    Raises:
        Exception: Storage errors propagate to the caller
    """
    supabase = get_supabase()

    row = {
        "workspace_id": str(workspace_id),
        "agent_type": agent_type,
        "summary": payload.summary,
        "key_topics": payload.key_topics,
        "key_decisions": payload.key_decisions,
        "action_items": payload.action_items,
        "time_period_start": to_timestamp(period_start),
        "time_period_end": to_timestamp(period_end),
        "message_count": message_count,
    }

    try:
        response = supabase.table(TABLE).insert(row).execute()
    except Exception as e:
        logger.error(f"Failed to store memory summary for workspace {workspace_id}: {e}")
        raise

    logger.info(
        f"Stored memory summary over {message_count} turns",
        extra={"workspace_id": str(workspace_id), "agent_type": agent_type},
    )
    return MemorySummary(**response.data[0])


def get_latest_summary(workspace_id: str, agent_type: str) -> MemorySummary | None:
    """Get the current (most recently created) summary, or None."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table(TABLE)
            .select("*")
            .eq("workspace_id", str(workspace_id))
            .eq("agent_type", agent_type)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.warning(f"Failed to fetch memory summary for workspace {workspace_id}: {e}")
        return None

    if not response.data:
        return None
    return MemorySummary(**response.data[0])


def list_summaries(workspace_id: str, agent_type: str, limit: int = 20) -> list[MemorySummary]:
    """List summaries newest first (audit view)."""
    supabase = get_supabase()

    try:
        response = (
            supabase.table(TABLE)
            .select("*")
            .eq("workspace_id", str(workspace_id))
            .eq("agent_type", agent_type)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        logger.warning(f"Failed to list memory summaries for workspace {workspace_id}: {e}")
        return []

    return [MemorySummary(**row) for row in response.data or []]

"""Conversation history: append-only log of agent turns.

Turns are scoped by (workspace, agent type, session) and are never updated
or deleted here; retention is an external policy.
"""

from datetime import timedelta
from typing import Any
from uuid import uuid4

from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import ConversationTurn, TurnInput
from agent_memory.db.supabase_client import get_supabase, to_timestamp, utc_now

logger = get_logger(__name__)

TABLE = "conversation_history"


def create_session_id() -> str:
    """Start a new conversation session."""
    return str(uuid4())


def _turn_row(
    workspace_id: str,
    agent_type: str,
    session_id: str,
    turn: TurnInput,
    user_id: str | None,
) -> dict[str, Any]:
    return {
        "workspace_id": str(workspace_id),
        "user_id": str(user_id) if user_id else None,
        "agent_type": agent_type,
        "session_id": str(session_id),
        "role": turn.role,
        "content": turn.content,
        "metadata": turn.metadata or {},
    }


def append_turn(
    workspace_id: str,
    agent_type: str,
    session_id: str,
    turn: TurnInput,
    user_id: str | None = None,
) -> ConversationTurn:
    """
    Append one turn to the history log.

    Raises:
        Exception: Storage errors propagate to the caller
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table(TABLE)
            .insert(_turn_row(workspace_id, agent_type, session_id, turn, user_id))
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to append turn for workspace {workspace_id}: {e}")
        raise

    return ConversationTurn(**response.data[0])


def append_turns(
    workspace_id: str,
    agent_type: str,
    session_id: str,
    turns: list[TurnInput],
    user_id: str | None = None,
) -> int:
    """
    Append several turns in one round trip (e.g. a user/assistant exchange).

    Returns:
        Number of turns written
    """
    if not turns:
        return 0

    supabase = get_supabase()
    rows = [_turn_row(workspace_id, agent_type, session_id, t, user_id) for t in turns]

    try:
        response = supabase.table(TABLE).insert(rows).execute()
    except Exception as e:
        logger.error(f"Failed to append {len(rows)} turns for workspace {workspace_id}: {e}")
        raise

    count = len(response.data) if response.data else 0
    logger.debug(
        f"Appended {count} turns",
        extra={"workspace_id": str(workspace_id), "agent_type": agent_type},
    )
    return count


def recent_turns(
    workspace_id: str,
    agent_type: str,
    limit: int = 50,
    days_back: int = 30,
    session_id: str | None = None,
) -> list[ConversationTurn]:
    """
    Get the newest turns inside the lookback window, oldest first.

    Args:
        workspace_id: Workspace UUID
        agent_type: Agent tag (chief_of_staff, research, ...)
        limit: Maximum number of turns
        days_back: Lookback window in days
        session_id: Restrict to one session

    Returns:
        Turns in ascending creation order; empty when the window is empty
        or the store is unreachable
    """
    if limit <= 0:
        return []

    supabase = get_supabase()
    cutoff = utc_now() - timedelta(days=days_back)

    try:
        query = (
            supabase.table(TABLE)
            .select("*")
            .eq("workspace_id", str(workspace_id))
            .eq("agent_type", agent_type)
            .gte("created_at", to_timestamp(cutoff))
        )
        if session_id:
            query = query.eq("session_id", str(session_id))

        response = query.order("created_at", desc=True).limit(limit).execute()
    except Exception as e:
        logger.warning(f"Failed to fetch history for workspace {workspace_id}: {e}")
        return []

    turns = [ConversationTurn(**row) for row in response.data or []]
    turns.reverse()
    return turns

"""Per-workspace context settings registry.

One row per workspace, created lazily on first write. Reads never fail for
a missing row: the documented defaults are returned instead.
"""

from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import (
    ContextSettings,
    ContextSettingsUpdate,
    default_context_settings,
)
from agent_memory.db.supabase_client import get_supabase, to_timestamp, utc_now

logger = get_logger(__name__)

TABLE = "agent_context_settings"


def get_context_settings(workspace_id: str) -> ContextSettings:
    """
    Get context settings for a workspace.

    Returns:
        Stored settings, with NULL columns filled from the defaults;
        the defaults outright when no row exists or the read fails
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table(TABLE)
            .select("*")
            .eq("workspace_id", str(workspace_id))
            .maybe_single()
            .execute()
        )
    except Exception as e:
        logger.warning(f"Failed to get context settings for workspace {workspace_id}: {e}")
        return default_context_settings(str(workspace_id))

    # maybe_single() can hand back None instead of an empty response
    if response is None or not response.data:
        return default_context_settings(str(workspace_id))

    return ContextSettings.from_row(response.data)


def update_context_settings(
    workspace_id: str,
    update: ContextSettingsUpdate,
) -> ContextSettings:
    """
    Upsert only the provided fields.

    Unset fields keep their stored value on an existing row; a new row gets
    the column defaults, which match the documented defaults.

    Raises:
        Exception: Storage errors propagate to the caller
    """
    supabase = get_supabase()

    # custom_instructions is the only nullable field; None clears it
    payload = {
        k: v
        for k, v in update.model_dump(exclude_unset=True).items()
        if v is not None or k == "custom_instructions"
    }
    payload["workspace_id"] = str(workspace_id)
    payload["updated_at"] = to_timestamp(utc_now())

    try:
        supabase.table(TABLE).upsert(payload, on_conflict="workspace_id").execute()
    except Exception as e:
        logger.error(f"Failed to update context settings for workspace {workspace_id}: {e}")
        raise

    logger.info(
        f"Updated context settings: {sorted(k for k in payload if k not in ('workspace_id', 'updated_at'))}",
        extra={"workspace_id": str(workspace_id)},
    )
    return get_context_settings(workspace_id)

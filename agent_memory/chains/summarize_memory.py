"""Memory summarization: compress a week of conversation into a durable summary.

Flow:
1. Load turns from the fixed lookback window
2. Skip when fewer than MIN_TURNS_FOR_SUMMARY exist (normal no-op)
3. Ask the oracle for a structured summary block
4. Persist a new MemorySummary; earlier summaries are never touched

Oracle failures, timeouts and unparseable responses all end in "no summary"
so the calling request carries on without one.
"""

from datetime import timedelta

from pydantic import ValidationError

from agent_memory.core.config import get_settings
from agent_memory.core.llm import complete, parse_llm_json
from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import ConversationTurn, MemorySummary, SummaryPayload
from agent_memory.db.conversation_history import recent_turns
from agent_memory.db.memory_summaries import insert_memory_summary
from agent_memory.db.supabase_client import utc_now

logger = get_logger(__name__)

SUMMARY_LOOKBACK_DAYS = 7
MIN_TURNS_FOR_SUMMARY = 5
MAX_TURNS_PER_SUMMARY = 100

SUMMARY_SYSTEM_PROMPT = """You maintain long-term memory for an assistant that supports a nonprofit team.
Summarize recent conversations with the user so future sessions can pick up where they left off.
Keep names, dates, commitments and open questions. Do not invent facts.

Respond with ONLY a JSON object:
{
  "summary": "2-3 paragraph summary of what was discussed and any patterns",
  "key_topics": ["topic1", "topic2"],
  "key_decisions": ["decision1", "decision2"],
  "action_items": ["item1", "item2"]
}"""


def format_transcript(turns: list[ConversationTurn]) -> str:
    """Render turns as ``role: content`` pairs separated by blank lines."""
    return "\n\n".join(f"{t.role}: {t.content}" for t in turns)


def summarize_if_due(workspace_id: str, agent_type: str) -> MemorySummary | None:
    """
    Summarize the last week of turns for (workspace, agent type) when enough exist.

    Args:
        workspace_id: Workspace UUID
        agent_type: Agent tag whose history is summarized

    Returns:
        The newly stored summary, or None when no summary was produced
        (too few turns, oracle failure, or malformed oracle output)

    Raises:
        Exception: Only if persisting a successfully parsed summary fails
    """
    settings = get_settings()
    period_end = utc_now()
    period_start = period_end - timedelta(days=SUMMARY_LOOKBACK_DAYS)

    turns = recent_turns(
        workspace_id,
        agent_type,
        limit=MAX_TURNS_PER_SUMMARY,
        days_back=SUMMARY_LOOKBACK_DAYS,
    )
    if len(turns) < MIN_TURNS_FOR_SUMMARY:
        logger.debug(
            f"Skipping summary: {len(turns)} turns < {MIN_TURNS_FOR_SUMMARY}",
            extra={"workspace_id": str(workspace_id), "agent_type": agent_type},
        )
        return None

    prompt = f"CONVERSATIONS:\n{format_transcript(turns)}"

    try:
        raw = complete(
            SUMMARY_SYSTEM_PROMPT,
            prompt,
            model=settings.SUMMARY_MODEL,
            max_tokens=settings.SUMMARY_MAX_TOKENS,
            workflow="memory_summary",
            workspace_id=workspace_id,
        )
    except Exception as e:
        logger.warning(
            f"Summary oracle call failed, continuing without summary: {e}",
            extra={"workspace_id": str(workspace_id), "agent_type": agent_type},
        )
        return None

    try:
        payload = parse_llm_json(raw, SummaryPayload)
    except (ValueError, ValidationError) as e:
        logger.warning(
            f"Discarding malformed summary response: {e}",
            extra={"workspace_id": str(workspace_id), "agent_type": agent_type},
        )
        return None

    return insert_memory_summary(
        workspace_id,
        agent_type,
        payload,
        period_start=period_start,
        period_end=period_end,
        message_count=len(turns),
    )

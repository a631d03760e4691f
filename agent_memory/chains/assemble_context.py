"""Context assembly: the prompt context handed to an agent invocation.

Combines, in order: custom instructions, the context-mode block, the memory
block (current summary + recent turns), pending suggestions, and any
caller-supplied context.

Memory and suggestions are gated only by their include flags; ``minimal``
mode does not suppress them.
"""

from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import AssembledContext, ContextSettings, MemorySummary
from agent_memory.db.context_settings import get_context_settings
from agent_memory.db.conversation_history import recent_turns
from agent_memory.db.memory_summaries import get_latest_summary
from agent_memory.db.suggestions import list_suggestions
from agent_memory.db.workspace_signals import get_workspace

logger = get_logger(__name__)

RECENT_TURNS_IN_CONTEXT = 6
RECENT_TURNS_DAYS = 7
TURN_PREVIEW_CHARS = 200
SUGGESTIONS_IN_CONTEXT = 5
SUGGESTION_PREVIEW_CHARS = 100

ROLE_LABELS = {"user": "User", "assistant": "You"}


def _truncate(text: str, limit: int) -> str:
    """Cap ``text`` at ``limit`` characters, ellipsis included."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _summary_block(summary: MemorySummary) -> str:
    block = f"**Memory Summary from Previous Conversations:**\n{summary.summary}\n\n"
    if summary.key_topics:
        block += f"Key topics we've discussed: {', '.join(summary.key_topics)}\n"
    if summary.key_decisions:
        block += f"Important decisions made: {'; '.join(summary.key_decisions)}\n"
    if summary.action_items:
        block += f"Outstanding action items: {'; '.join(summary.action_items)}\n"
    return block + "\n"


def build_memory_context(
    workspace_id: str,
    agent_type: str,
    settings: ContextSettings | None = None,
) -> str:
    """
    Memory block for an agent: current summary, then the latest raw turns.

    Returns an empty string when history is disabled or nothing is stored.
    """
    settings = settings or get_context_settings(workspace_id)
    if not settings.include_conversation_history:
        return ""

    memory = ""

    summary = get_latest_summary(workspace_id, agent_type)
    if summary:
        memory += _summary_block(summary)

    turns = recent_turns(
        workspace_id,
        agent_type,
        limit=min(RECENT_TURNS_IN_CONTEXT, settings.max_history_messages),
        days_back=min(RECENT_TURNS_DAYS, settings.max_history_days),
    )
    if turns:
        memory += "**Recent Conversation Context:**\n"
        for turn in turns[-RECENT_TURNS_IN_CONTEXT:]:
            label = ROLE_LABELS.get(turn.role, turn.role)
            memory += f"{label}: {_truncate(turn.content, TURN_PREVIEW_CHARS)}\n"
        memory += "\n"

    return memory


def _mode_block(workspace_id: str, settings: ContextSettings) -> str:
    if settings.context_mode == "minimal":
        workspace = get_workspace(workspace_id)
        if workspace and workspace.get("name"):
            return f"**Current Workspace:** {workspace['name']}\n\n"
        return ""
    if settings.context_mode == "focused":
        return "**Context Mode:** Focused (single workspace only, cross-workspace data excluded)\n\n"
    if settings.include_cross_workspace:
        return "**Context Mode:** Full (cross-workspace enabled)\n\n"
    return ""


def _suggestions_block(workspace_id: str) -> str:
    suggestions = list_suggestions(workspace_id, status="new", limit=SUGGESTIONS_IN_CONTEXT)
    if not suggestions:
        return ""

    block = "**Pending Suggestions to Consider:**\n"
    for s in suggestions:
        block += f"- [{s.priority}] {s.title}: {_truncate(s.content, SUGGESTION_PREVIEW_CHARS)}\n"
    return block + "\n"


def assemble_context(
    workspace_id: str,
    agent_type: str,
    additional_context: str | None = None,
) -> AssembledContext:
    """
    Compose the full prompt context for one agent invocation.

    Args:
        workspace_id: Workspace UUID
        agent_type: Agent tag the context is built for
        additional_context: Caller text appended verbatim

    Returns:
        The context text and the settings record that produced it
    """
    settings = get_context_settings(workspace_id)

    context = ""

    if settings.custom_instructions:
        context += f"**Special Instructions for this Workspace:**\n{settings.custom_instructions}\n\n"

    context += _mode_block(workspace_id, settings)

    if settings.include_conversation_history:
        context += build_memory_context(workspace_id, agent_type, settings)

    if settings.include_suggestions:
        context += _suggestions_block(workspace_id)

    if additional_context:
        context += additional_context

    logger.debug(
        f"Assembled {len(context)} chars of context in {settings.context_mode} mode",
        extra={"workspace_id": str(workspace_id), "agent_type": agent_type},
    )
    return AssembledContext(context=context, settings=settings)

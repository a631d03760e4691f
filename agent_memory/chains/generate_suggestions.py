"""Proactive suggestion generation.

Each run is stateless:
1. Collect  - read operational signals and render them as labeled blocks
2. Synthesize - ask the oracle for 3-5 structured suggestions
3. Persist  - store each new suggestion (skipping recent duplicates)

Too little signal, an oracle failure or an oracle timeout yield an empty
result. An unparseable oracle response yields one generic fallback
suggestion carrying the raw text.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from pydantic import ValidationError

from agent_memory.core.config import get_settings
from agent_memory.core.deadlines import classify_deadline, classify_stale_draft, days_since, days_until
from agent_memory.core.llm import complete, parse_llm_json
from agent_memory.core.logging import get_logger, log_with_context
from agent_memory.core.schemas_suggestions import (
    SuggestionBatch,
    SuggestionDraft,
    SuggestionGenerationResult,
)
from agent_memory.db import workspace_signals
from agent_memory.db.activity_log import list_recent_activity, summarize_activity
from agent_memory.db.suggestions import create_suggestion, recent_fingerprints, suggestion_fingerprint
from agent_memory.db.supabase_client import utc_now

logger = get_logger(__name__)

GENERATOR_AGENT_TYPE = "system"
MIN_SIGNAL_CHARS = 50
FALLBACK_CONTENT_CHARS = 500

SUGGESTION_SYSTEM_PROMPT = """You are a proactive assistant for a nonprofit team. You analyze workspace activity and deadlines to surface opportunities, prevent problems, and help the user be more effective.

Types of suggestions you can make:
- opportunity: A chance to pursue something valuable
- reminder: Something the user might have forgotten
- insight: A pattern or observation worth noting
- warning: A potential problem to address
- recommendation: A suggested action or approach

Be specific and actionable, explain why it matters, reference concrete data, prioritize honestly (low, medium, high, urgent), and focus on the most impactful items.

Respond with ONLY a JSON object:
{
  "suggestions": [
    {
      "type": "opportunity|reminder|insight|warning|recommendation",
      "title": "Brief title",
      "content": "Detailed suggestion (2-3 sentences)",
      "priority": "low|medium|high|urgent",
      "trigger_reason": "What data triggered this",
      "related_entity_type": "task|rfp|proposal|contact|null",
      "related_entity_id": "uuid or null",
      "action_type": "create_task|send_email|update_status|review|null",
      "action_params": {}
    }
  ]
}"""


@dataclass
class SignalBundle:
    """Rendered operational signals for one workspace."""

    header: str = ""
    blocks: list[str] = field(default_factory=list)

    @property
    def signal_text(self) -> str:
        return "\n".join(self.blocks)

    def render(self) -> str:
        return self.header + self.signal_text


def _urgency_tag(days: int) -> str:
    urgency = classify_deadline(days)
    return f" <{urgency}>" if urgency else ""


def _block(title: str, lines: list[str]) -> str:
    return f"**{title}:**\n" + "\n".join(lines) + "\n"


def collect_signals(workspace_id: str, today: date) -> SignalBundle:
    """Gather every signal category and render the non-empty ones."""
    bundle = SignalBundle()

    overdue = workspace_signals.list_overdue_tasks(workspace_id, today)
    if overdue:
        bundle.blocks.append(
            _block(
                f"Overdue Tasks ({len(overdue)})",
                [
                    f'- "{t["title"]}" was due {t["due_date"]} [{t.get("priority") or "none"}] (id: {t["id"]})'
                    for t in overdue
                ],
            )
        )

    upcoming = workspace_signals.list_upcoming_tasks(workspace_id, today)
    if upcoming:
        lines = []
        for t in upcoming:
            days = days_until(t["due_date"], today)
            lines.append(
                f'- "{t["title"]}" due in {days} days ({t["due_date"]}) '
                f'[{t.get("priority") or "none"}]{_urgency_tag(days)} (id: {t["id"]})'
            )
        bundle.blocks.append(_block(f"Tasks Due This Week ({len(upcoming)})", lines))

    opportunities = workspace_signals.list_opportunity_deadlines(workspace_id, today)
    if opportunities:
        lines = []
        for r in opportunities:
            days = days_until(r["response_deadline"], today)
            score = f" Score: {r['alignment_score']}" if r.get("alignment_score") else ""
            lines.append(
                f'- "{r["title"]}" deadline in {days} days [{r["status"]}]{score}'
                f'{_urgency_tag(days)} (id: {r["id"]})'
            )
        bundle.blocks.append(_block("Opportunity Deadlines", lines))

    proposals = workspace_signals.list_active_proposals(workspace_id)
    if proposals:
        lines = []
        for p in proposals:
            line = f'- "{p["title"]}" [{p["status"]}]'
            if p.get("completion_percentage"):
                line += f" {p['completion_percentage']}% complete"
            if p.get("submission_deadline"):
                days = days_until(p["submission_deadline"], today)
                line += f" Due in {days} days{_urgency_tag(days)}"
            lines.append(f"{line} (id: {p['id']})")
        bundle.blocks.append(_block("Active Proposals", lines))

    drafts = workspace_signals.list_stale_drafts(workspace_id, today)
    stale_lines = []
    for d in drafts:
        age = days_since(d["created_at"], today)
        urgency = classify_stale_draft(age)
        if urgency:
            stale_lines.append(f'- "{d["title"]}" in draft for {age} days <{urgency}> (id: {d["id"]})')
    if stale_lines:
        bundle.blocks.append(_block("Stale Draft Proposals", stale_lines))

    contacts = workspace_signals.list_contacts_needing_attention(workspace_id)
    if contacts:
        bundle.blocks.append(
            _block(
                "Contacts Needing Attention",
                [
                    f"- {c['name']} ({c.get('type') or 'contact'}) - {c['relationship_health']} (id: {c['id']})"
                    for c in contacts
                ],
            )
        )

    activity = summarize_activity(list_recent_activity(workspace_id))
    if activity:
        bundle.blocks.append(
            _block("Recent Activity Pattern", [f"- {k}: {n} times" for k, n in activity.items()])
        )

    workspace = workspace_signals.get_workspace(workspace_id)
    if workspace:
        bundle.header = (
            f"**Workspace:** {workspace.get('name')} ({workspace.get('type') or 'general'})\n"
            f"**Today:** {today:%A, %B} {today.day}, {today.year}\n\n"
        )

    return bundle


def fallback_suggestion(raw_text: str) -> SuggestionDraft:
    """Single generic suggestion used when the oracle reply has no usable structure."""
    return SuggestionDraft(
        suggestion_type="insight",
        title="Review workspace priorities",
        content=raw_text.strip()[:FALLBACK_CONTENT_CHARS],
        priority="medium",
        trigger_reason="Assistant response could not be parsed into structured suggestions",
        action_type="monitor",
    )


def parse_suggestions(raw_text: str) -> list[SuggestionDraft] | None:
    """
    Parse the oracle reply into drafts.

    Returns:
        Drafts (entries without a usable title are dropped), or None when the
        reply holds no well-formed suggestion block
    """
    try:
        batch = parse_llm_json(raw_text, SuggestionBatch)
    except (ValueError, ValidationError):
        return None

    drafts = []
    for item in batch.suggestions:
        try:
            drafts.append(SuggestionDraft.model_validate(item))
        except ValidationError as e:
            logger.debug(f"Dropping malformed suggestion entry: {e}")
    return drafts


def generate_suggestions(workspace_id: str, today: date | None = None) -> SuggestionGenerationResult:
    """
    Generate, dedupe and persist proactive suggestions for a workspace.

    Args:
        workspace_id: Workspace UUID
        today: Reference date for deadline maths (defaults to today, UTC)

    Returns:
        Result with the stored suggestions; empty with a message when there
        was too little signal or the oracle was unavailable

    Raises:
        Exception: Only if persisting a suggestion fails
    """
    settings = get_settings()
    today = today or utc_now().date()

    bundle = collect_signals(workspace_id, today)
    if len(bundle.signal_text) < MIN_SIGNAL_CHARS:
        logger.info(
            "Not enough signal to generate suggestions",
            extra={"workspace_id": str(workspace_id)},
        )
        return SuggestionGenerationResult(message="Not enough context to generate suggestions")

    prompt = (
        "Based on this workspace context, generate 3-5 proactive suggestions to help the user be more effective.\n\n"
        f"{bundle.render()}\n"
        "Focus on urgent items, opportunities that might be missed, patterns that suggest problems, "
        "and quick wins that could build momentum."
    )

    try:
        raw = complete(
            SUGGESTION_SYSTEM_PROMPT,
            prompt,
            model=settings.SUGGESTION_MODEL,
            max_tokens=settings.SUGGESTION_MAX_TOKENS,
            workflow="proactive_suggestions",
            workspace_id=workspace_id,
        )
    except Exception as e:
        logger.warning(
            f"Suggestion oracle call failed, no suggestions generated: {e}",
            extra={"workspace_id": str(workspace_id)},
        )
        return SuggestionGenerationResult(message="Suggestion generation unavailable")

    drafts = parse_suggestions(raw)
    if drafts is None:
        if not raw.strip():
            return SuggestionGenerationResult(message="Suggestion generation returned no content")
        logger.warning(
            "Unstructured suggestion response, storing fallback suggestion",
            extra={"workspace_id": str(workspace_id)},
        )
        drafts = [fallback_suggestion(raw)]

    seen = recent_fingerprints(workspace_id, settings.SUGGESTION_DEDUPE_WINDOW_DAYS)
    stored = []
    skipped = 0
    for draft in drafts:
        fingerprint = suggestion_fingerprint(workspace_id, draft.title, draft.trigger_reason)
        if fingerprint in seen:
            skipped += 1
            continue
        seen.add(fingerprint)
        stored.append(create_suggestion(workspace_id, GENERATOR_AGENT_TYPE, draft))

    log_with_context(
        logger,
        logging.INFO,
        "Generated suggestions",
        workspace_id=workspace_id,
        stored=len(stored),
        skipped_duplicates=skipped,
    )
    return SuggestionGenerationResult(
        suggestions=stored,
        count=len(stored),
        skipped_duplicates=skipped,
    )

"""Pydantic schemas for proactive suggestions."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

SuggestionType = Literal["opportunity", "reminder", "insight", "warning", "recommendation"]
SuggestionPriority = Literal["low", "medium", "high", "urgent"]
SuggestionStatus = Literal["new", "seen", "acted", "dismissed"]

SUGGESTION_TYPES: tuple[str, ...] = ("opportunity", "reminder", "insight", "warning", "recommendation")
PRIORITY_RANK: dict[str, int] = {"urgent": 0, "high": 1, "medium": 2, "low": 3}
OPEN_STATUSES: tuple[str, ...] = ("new", "seen")
TERMINAL_STATUSES: frozenset[str] = frozenset({"acted", "dismissed"})
TRANSITION_TIMESTAMPS: dict[str, str] = {
    "seen": "seen_at",
    "acted": "acted_at",
    "dismissed": "dismissed_at",
}

_NULLISH = {"", "null", "none"}


def _nullish(v: Any) -> Any:
    if isinstance(v, str) and v.strip().lower() in _NULLISH:
        return None
    return v


class SuggestionDraft(BaseModel):
    """A suggestion proposed by the oracle or a caller, before it is stored.

    Accepts the oracle's loose shape: ``type`` is an alias for
    ``suggestion_type``, unknown types become ``insight`` and unknown
    priorities become ``medium``.
    """

    model_config = {"populate_by_name": True}

    suggestion_type: SuggestionType = Field(default="insight", alias="type")
    title: str = Field(..., min_length=1)
    content: str = ""
    priority: SuggestionPriority = "medium"
    trigger_reason: str | None = None
    related_entity_type: str | None = None
    related_entity_id: str | None = None
    action_type: str | None = None
    action_params: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime | None = None

    @field_validator("suggestion_type", mode="before")
    @classmethod
    def _map_type(cls, v: Any) -> str:
        v = str(v or "").strip().lower()
        return v if v in SUGGESTION_TYPES else "insight"

    @field_validator("priority", mode="before")
    @classmethod
    def _map_priority(cls, v: Any) -> str:
        v = str(v or "").strip().lower()
        return v if v in PRIORITY_RANK else "medium"

    @field_validator("related_entity_type", "related_entity_id", "action_type", "trigger_reason", mode="before")
    @classmethod
    def _strip_null(cls, v: Any) -> Any:
        v = _nullish(v)
        return str(v) if v is not None else None

    @field_validator("content", mode="before")
    @classmethod
    def _none_content(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("action_params", mode="before")
    @classmethod
    def _none_params(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


class SuggestionBatch(BaseModel):
    """Structured block the oracle is asked to return when generating suggestions."""

    suggestions: list[dict[str, Any]]


class Suggestion(BaseModel):
    """A stored suggestion with its lifecycle timestamps."""

    id: str
    workspace_id: str
    agent_type: str
    suggestion_type: str
    title: str
    content: str
    priority: SuggestionPriority = "medium"
    trigger_reason: str | None = None
    related_entity_type: str | None = None
    related_entity_id: str | None = None
    action_type: str | None = None
    action_params: dict[str, Any] = Field(default_factory=dict)
    status: SuggestionStatus = "new"
    fingerprint: str | None = None
    expires_at: datetime | None = None
    seen_at: datetime | None = None
    acted_at: datetime | None = None
    dismissed_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("action_params", mode="before")
    @classmethod
    def _none_params(cls, v: Any) -> Any:
        return v or {}

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class SuggestionGenerationResult(BaseModel):
    """Outcome of one generator run. An empty list is a normal outcome."""

    suggestions: list[Suggestion] = Field(default_factory=list)
    count: int = 0
    skipped_duplicates: int = 0
    message: str | None = None

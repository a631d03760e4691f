"""Pydantic schemas for conversation memory and context settings."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

TurnRole = Literal["user", "assistant"]
ContextMode = Literal["full", "focused", "minimal"]


class ConversationTurn(BaseModel):
    """One immutable turn of an agent conversation."""

    id: str | None = None
    workspace_id: str
    agent_type: str
    session_id: str
    role: TurnRole
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None
    created_at: datetime | None = None

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata(cls, v: Any) -> Any:
        return v or {}


class TurnInput(BaseModel):
    """A turn as supplied by a caller, before it is scoped and stored."""

    role: TurnRole
    content: str = Field(..., min_length=1)
    metadata: dict[str, Any] | None = None


class MemorySummary(BaseModel):
    """Durable compression of a window of conversation turns."""

    id: str | None = None
    workspace_id: str
    agent_type: str
    summary: str
    key_topics: list[str] = Field(default_factory=list)
    key_decisions: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    time_period_start: datetime
    time_period_end: datetime
    message_count: int = 0
    created_at: datetime | None = None

    @field_validator("key_topics", "key_decisions", "action_items", mode="before")
    @classmethod
    def _none_list(cls, v: Any) -> Any:
        return v or []


class SummaryPayload(BaseModel):
    """Structured block the oracle is asked to return when summarizing."""

    summary: str = Field(..., min_length=1)
    key_topics: list[str] = Field(default_factory=list)
    key_decisions: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)

    @field_validator("key_topics", "key_decisions", "action_items", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v if item]


class ContextSettings(BaseModel):
    """Per-workspace context-assembly configuration."""

    workspace_id: str
    context_mode: ContextMode = "full"
    include_cross_workspace: bool = True
    include_conversation_history: bool = True
    include_suggestions: bool = True
    max_history_messages: int = 50
    max_history_days: int = 30
    excluded_workspaces: list[str] = Field(default_factory=list)
    custom_instructions: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ContextSettings":
        """Build from a database row; NULL columns fall back to the defaults."""
        return cls(**{k: v for k, v in row.items() if k in cls.model_fields and v is not None})


class ContextSettingsUpdate(BaseModel):
    """Partial settings update; only fields that are set get written."""

    context_mode: ContextMode | None = None
    include_cross_workspace: bool | None = None
    include_conversation_history: bool | None = None
    include_suggestions: bool | None = None
    max_history_messages: int | None = Field(default=None, ge=0)
    max_history_days: int | None = Field(default=None, ge=0)
    excluded_workspaces: list[str] | None = None
    custom_instructions: str | None = None


def default_context_settings(workspace_id: str) -> ContextSettings:
    """Documented defaults for a workspace with no stored settings."""
    return ContextSettings(workspace_id=workspace_id)


class AssembledContext(BaseModel):
    """Prompt context for one agent invocation plus the settings that shaped it."""

    context: str
    settings: ContextSettings

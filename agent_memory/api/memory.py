"""Conversation memory and activity endpoints."""

import asyncio
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from agent_memory.chains.summarize_memory import summarize_if_due
from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import ConversationTurn, MemorySummary, TurnInput
from agent_memory.db.activity_log import log_activity
from agent_memory.db.conversation_history import append_turns, create_session_id, recent_turns
from agent_memory.db.memory_summaries import get_latest_summary

logger = get_logger(__name__)

router = APIRouter()


class AppendTurnsRequest(BaseModel):
    workspace_id: UUID
    agent_type: str = Field(..., min_length=1)
    session_id: UUID | None = Field(None, description="Omit to start a new session")
    user_id: UUID | None = None
    turns: list[TurnInput] = Field(..., min_length=1)


class AppendTurnsResponse(BaseModel):
    session_id: str
    count: int


class SummarizeRequest(BaseModel):
    workspace_id: UUID
    agent_type: str = Field(..., min_length=1)


class SummarizeResponse(BaseModel):
    summarized: bool
    summary: MemorySummary | None = None


class LogActivityRequest(BaseModel):
    workspace_id: UUID
    activity_type: str = Field(..., min_length=1)
    entity_type: str | None = None
    entity_id: UUID | None = None
    user_id: UUID | None = None
    metadata: dict[str, Any] | None = None


@router.post("/memory/turns", response_model=AppendTurnsResponse)
async def append_turns_endpoint(request: AppendTurnsRequest) -> AppendTurnsResponse:
    """Append turns to a conversation session, opening one if needed."""
    session_id = str(request.session_id) if request.session_id else create_session_id()

    try:
        count = append_turns(
            str(request.workspace_id),
            request.agent_type,
            session_id,
            request.turns,
            user_id=str(request.user_id) if request.user_id else None,
        )
    except Exception as e:
        logger.error(f"Error appending conversation turns: {e}")
        raise HTTPException(status_code=500, detail="Failed to save conversation") from e

    return AppendTurnsResponse(session_id=session_id, count=count)


@router.get("/memory/turns")
async def list_turns_endpoint(
    workspace_id: UUID = Query(..., description="Workspace UUID"),
    agent_type: str = Query(..., description="Agent type"),
    session_id: UUID | None = Query(None, description="Restrict to one session"),
    limit: int = Query(50, ge=1, le=500),
    days_back: int = Query(30, ge=1, le=365),
) -> dict[str, list[ConversationTurn]]:
    """Recent turns, oldest first."""
    turns = recent_turns(
        str(workspace_id),
        agent_type,
        limit=limit,
        days_back=days_back,
        session_id=str(session_id) if session_id else None,
    )
    return {"turns": turns}


@router.post("/memory/summarize", response_model=SummarizeResponse)
async def summarize_endpoint(request: SummarizeRequest) -> SummarizeResponse:
    """Summarize the last week of history when enough turns exist."""
    try:
        summary = await asyncio.to_thread(summarize_if_due, str(request.workspace_id), request.agent_type)
    except Exception as e:
        logger.error(f"Error storing memory summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to store memory summary") from e

    return SummarizeResponse(summarized=summary is not None, summary=summary)


@router.get("/memory/summary")
async def get_summary_endpoint(
    workspace_id: UUID = Query(..., description="Workspace UUID"),
    agent_type: str = Query(..., description="Agent type"),
) -> dict[str, MemorySummary | None]:
    """Current memory summary, or null."""
    return {"summary": get_latest_summary(str(workspace_id), agent_type)}


@router.post("/activity")
async def log_activity_endpoint(request: LogActivityRequest) -> dict[str, bool]:
    """Record a user activity for suggestion generation."""
    try:
        log_activity(
            str(request.workspace_id),
            request.activity_type,
            entity_type=request.entity_type,
            entity_id=str(request.entity_id) if request.entity_id else None,
            metadata=request.metadata,
            user_id=str(request.user_id) if request.user_id else None,
        )
    except Exception as e:
        logger.error(f"Error logging activity: {e}")
        raise HTTPException(status_code=500, detail="Failed to log activity") from e

    return {"success": True}

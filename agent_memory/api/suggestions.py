"""Proactive suggestions API.

Suggestions are generated from upcoming deadlines, stale drafts,
relationship health and activity patterns, then tracked through
new -> seen -> acted | dismissed.
"""

import asyncio
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from agent_memory.chains.generate_suggestions import generate_suggestions
from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_suggestions import (
    Suggestion,
    SuggestionGenerationResult,
    SuggestionStatus,
)
from agent_memory.db.suggestions import (
    SuggestionNotFoundError,
    SuggestionTransitionError,
    list_suggestions,
    set_suggestion_status,
)

logger = get_logger(__name__)

router = APIRouter()


class GenerateSuggestionsRequest(BaseModel):
    workspace_id: UUID


class UpdateSuggestionStatusRequest(BaseModel):
    status: Literal["seen", "acted", "dismissed"]


@router.get("/suggestions")
async def list_suggestions_endpoint(
    workspace_id: UUID = Query(..., description="Workspace UUID"),
    status: SuggestionStatus = Query("new", description="Lifecycle status"),
    limit: int = Query(10, ge=1, le=100),
    agent_type: str | None = Query(None, description="Producing agent"),
) -> dict[str, list[Suggestion]]:
    """Active suggestions ranked urgent > high > medium > low."""
    suggestions = list_suggestions(
        str(workspace_id),
        status=status,
        limit=limit,
        agent_type=agent_type,
    )
    return {"suggestions": suggestions}


@router.post("/suggestions/generate", response_model=SuggestionGenerationResult)
async def generate_suggestions_endpoint(request: GenerateSuggestionsRequest) -> SuggestionGenerationResult:
    """Run the suggestion generator for a workspace."""
    try:
        return await asyncio.to_thread(generate_suggestions, str(request.workspace_id))
    except Exception as e:
        logger.error(f"Suggestion generation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to process suggestions") from e


@router.patch("/suggestions/{suggestion_id}", response_model=Suggestion)
async def update_suggestion_status_endpoint(
    suggestion_id: UUID,
    request: UpdateSuggestionStatusRequest,
) -> Suggestion:
    """
    Mark a suggestion seen, acted or dismissed.

    Raises:
        HTTPException 404: Unknown suggestion
        HTTPException 409: Suggestion already acted on or dismissed
    """
    try:
        return set_suggestion_status(str(suggestion_id), request.status)
    except SuggestionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SuggestionTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

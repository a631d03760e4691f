"""Context settings and context assembly endpoints.

Context modes:
- full: cross-workspace context, full history
- focused: single workspace only (client confidentiality)
- minimal: just the current workspace name
"""

import asyncio
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from agent_memory.chains.assemble_context import assemble_context
from agent_memory.core.logging import get_logger
from agent_memory.core.schemas_memory import AssembledContext, ContextSettings, ContextSettingsUpdate
from agent_memory.db.context_settings import get_context_settings, update_context_settings

logger = get_logger(__name__)

router = APIRouter()


class UpdateContextSettingsRequest(BaseModel):
    workspace_id: UUID
    settings: ContextSettingsUpdate


class UpdateContextSettingsResponse(BaseModel):
    success: bool = True
    settings: ContextSettings


class AssembleContextRequest(BaseModel):
    workspace_id: UUID
    agent_type: str = Field(..., min_length=1)
    additional_context: str | None = None


@router.get("/context")
async def get_settings_endpoint(
    workspace_id: UUID = Query(..., description="Workspace UUID"),
) -> dict[str, ContextSettings]:
    """Get the workspace's context settings (defaults when none are stored)."""
    return {"settings": get_context_settings(str(workspace_id))}


@router.post("/context", response_model=UpdateContextSettingsResponse)
async def update_settings_endpoint(request: UpdateContextSettingsRequest) -> UpdateContextSettingsResponse:
    """Update only the provided settings fields and return the stored result."""
    try:
        settings = update_context_settings(str(request.workspace_id), request.settings)
    except Exception as e:
        logger.error(f"Error updating context settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to update context settings") from e

    return UpdateContextSettingsResponse(settings=settings)


@router.post("/context/assemble", response_model=AssembledContext)
async def assemble_context_endpoint(request: AssembleContextRequest) -> AssembledContext:
    """Build the prompt context an agent should run with."""
    return await asyncio.to_thread(
        assemble_context,
        str(request.workspace_id),
        request.agent_type,
        additional_context=request.additional_context,
    )

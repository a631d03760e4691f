"""API router for v1 endpoints."""

from fastapi import APIRouter

from agent_memory.api import context, memory, suggestions

router = APIRouter()

# Context settings and assembly
router.include_router(context.router, prefix="/agents", tags=["context"])

# Conversation memory and activity log
router.include_router(memory.router, prefix="/agents", tags=["memory"])

# Proactive suggestions
router.include_router(suggestions.router, prefix="/agents", tags=["suggestions"])

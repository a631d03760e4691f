"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from agent_memory.api import router as api_router
from agent_memory.core.config import get_settings
from agent_memory.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the runtime configuration on startup."""
    settings = get_settings()
    logger.info(f"Starting agent memory service (env={settings.AGENT_MEMORY_ENV})")
    if not settings.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY not set: summaries and suggestions are disabled")
    yield
    logger.info("Agent memory service stopped")


app = FastAPI(
    title="Agent Memory",
    description="Conversation memory, context assembly and proactive suggestions for workspace agents",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Domain validation errors that escape a router are client errors."""
    return JSONResponse(content={"detail": str(exc)}, status_code=400)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


app.include_router(api_router, prefix="/v1", tags=["v1"])

"""Completion oracle: Anthropic Messages API wrapper and defensive JSON parsing."""

import json
import re
import time
from functools import lru_cache
from typing import Any, TypeVar

from anthropic import Anthropic
from pydantic import BaseModel

from agent_memory.core.config import get_settings
from agent_memory.core.llm_usage import log_llm_usage
from agent_memory.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

_DECODER = json.JSONDecoder()


class LLMNotConfiguredError(RuntimeError):
    """Raised when no Anthropic API key is configured."""


@lru_cache(maxsize=1)
def get_anthropic_client() -> Anthropic:
    """
    Get the Anthropic client (cached singleton).

    The client carries the request deadline, so a slow completion raises
    ``anthropic.APITimeoutError`` instead of blocking the caller.

    Raises:
        LLMNotConfiguredError: If ANTHROPIC_API_KEY is empty
    """
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        raise LLMNotConfiguredError("ANTHROPIC_API_KEY is not configured")

    return Anthropic(
        api_key=settings.ANTHROPIC_API_KEY,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        max_retries=1,
    )


def complete(
    system: str,
    prompt: str,
    *,
    model: str,
    max_tokens: int,
    workflow: str,
    workspace_id: str | None = None,
) -> str:
    """
    Run one completion and return its text.

    Args:
        system: System instruction
        prompt: User input text
        model: Anthropic model name
        max_tokens: Output token cap
        workflow: Usage-log label (e.g. "memory_summary")
        workspace_id: Workspace the call is made for (usage attribution)

    Returns:
        Concatenated text blocks of the response

    Raises:
        LLMNotConfiguredError: If no API key is set
        anthropic.APIError: On API failure or timeout
    """
    client = get_anthropic_client()
    started = time.monotonic()

    response = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        system=system,
        messages=[{"role": "user", "content": prompt}],
    )

    duration_ms = int((time.monotonic() - started) * 1000)
    usage = getattr(response, "usage", None)
    log_llm_usage(
        workflow=workflow,
        model=model,
        provider="anthropic",
        tokens_input=getattr(usage, "input_tokens", 0) or 0,
        tokens_output=getattr(usage, "output_tokens", 0) or 0,
        duration_ms=duration_ms,
        workspace_id=workspace_id,
    )

    return "".join(
        getattr(block, "text", "") for block in (response.content or [])
        if getattr(block, "type", "text") == "text"
    )


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    return cleaned


def parse_llm_json_dict(raw_output: str) -> dict[str, Any]:
    """
    Return the first well-formed JSON object found in LLM output.

    Prose before or after the object is ignored, as are malformed
    candidates that precede a valid one.

    Args:
        raw_output: Raw string from LLM response

    Returns:
        Parsed dict

    Raises:
        ValueError: If no JSON object can be decoded
    """
    for text in (_strip_llm_fences(raw_output), raw_output):
        for match in re.finditer(r"\{", text):
            try:
                parsed, _ = _DECODER.raw_decode(text, match.start())
            except json.JSONDecodeError:
                continue
            if isinstance(parsed, dict):
                return parsed

    raise ValueError("No JSON object found in LLM output")


def parse_llm_json(raw_output: str, model: type[T]) -> T:
    """
    Parse LLM output as JSON and validate against a Pydantic model.

    Raises:
        ValueError: If no JSON object is found
        pydantic.ValidationError: If parsed JSON doesn't match schema
    """
    return model.model_validate(parse_llm_json_dict(raw_output))

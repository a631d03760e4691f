"""Tests for the completion oracle wrapper and defensive JSON parsing."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from pydantic import BaseModel, ValidationError

from agent_memory.core.llm import (
    LLMNotConfiguredError,
    complete,
    get_anthropic_client,
    parse_llm_json,
    parse_llm_json_dict,
)
from agent_memory.core.llm_usage import estimate_cost, log_llm_usage


class _Payload(BaseModel):
    summary: str


class TestParseLlmJsonDict:
    def test_plain_object(self):
        assert parse_llm_json_dict('{"a": 1}') == {"a": 1}

    def test_fenced_object(self):
        assert parse_llm_json_dict('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_prose_around_object(self):
        raw = 'Sure! Here you go: {"summary": "ok", "n": {"nested": true}} Let me know.'

        assert parse_llm_json_dict(raw) == {"summary": "ok", "n": {"nested": True}}

    def test_skips_malformed_candidate(self):
        raw = 'Template {like this} then {"summary": "real"}'

        assert parse_llm_json_dict(raw) == {"summary": "real"}

    def test_no_object_raises(self):
        with pytest.raises(ValueError):
            parse_llm_json_dict("No JSON here at all")

    def test_object_inside_array_is_found(self):
        assert parse_llm_json_dict('[1, 2, {"a": 1}]') == {"a": 1}


class TestParseLlmJson:
    def test_validates_against_model(self):
        assert parse_llm_json('{"summary": "done"}', _Payload).summary == "done"

    def test_schema_mismatch_raises(self):
        with pytest.raises(ValidationError):
            parse_llm_json('{"other": "field"}', _Payload)


class TestComplete:
    @patch("agent_memory.core.llm.log_llm_usage")
    @patch("agent_memory.core.llm.get_anthropic_client")
    def test_joins_text_blocks_and_logs_usage(self, mock_client_factory, mock_log_usage):
        client = MagicMock()
        client.messages.create.return_value = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Hello "),
                SimpleNamespace(type="tool_use", id="t1"),
                SimpleNamespace(type="text", text="world"),
            ],
            usage=SimpleNamespace(input_tokens=120, output_tokens=30),
        )
        mock_client_factory.return_value = client

        text = complete(
            "system prompt",
            "user prompt",
            model="claude-sonnet-4-20250514",
            max_tokens=500,
            workflow="memory_summary",
            workspace_id="ws-1",
        )

        assert text == "Hello world"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system prompt"
        assert kwargs["messages"] == [{"role": "user", "content": "user prompt"}]
        assert kwargs["max_tokens"] == 500
        usage = mock_log_usage.call_args.kwargs
        assert usage["workflow"] == "memory_summary"
        assert usage["tokens_input"] == 120
        assert usage["tokens_output"] == 30
        assert usage["workspace_id"] == "ws-1"

    @patch("agent_memory.core.llm.log_llm_usage")
    @patch("agent_memory.core.llm.get_anthropic_client")
    def test_api_errors_propagate(self, mock_client_factory, mock_log_usage):
        client = MagicMock()
        client.messages.create.side_effect = TimeoutError("deadline exceeded")
        mock_client_factory.return_value = client

        with pytest.raises(TimeoutError):
            complete("s", "p", model="m", max_tokens=10, workflow="w")
        mock_log_usage.assert_not_called()


@patch("agent_memory.core.llm.get_settings")
def test_missing_api_key_raises(mock_settings):
    mock_settings.return_value.ANTHROPIC_API_KEY = ""
    get_anthropic_client.cache_clear()
    try:
        with pytest.raises(LLMNotConfiguredError):
            get_anthropic_client()
    finally:
        get_anthropic_client.cache_clear()


class TestUsageLog:
    def test_estimate_cost(self):
        assert estimate_cost("claude-sonnet-4-20250514", 1_000_000, 1_000_000) == 18.0

    def test_unknown_model_costs_zero(self):
        assert estimate_cost("mystery-model", 1000, 1000) == 0.0

    def test_logs_row(self, fake_supabase):
        log_llm_usage("proactive_suggestions", "claude-sonnet-4-20250514", "anthropic", 100, 50, 900, "ws-1")

        (row,) = fake_supabase.rows("llm_usage_log")
        assert row["workflow"] == "proactive_suggestions"
        assert row["workspace_id"] == "ws-1"
        assert row["estimated_cost_usd"] > 0

    def test_storage_failure_is_swallowed(self, fake_supabase):
        fake_supabase.fail("llm_usage_log")

        log_llm_usage("memory_summary", "claude-sonnet-4-20250514", "anthropic", 1, 1)

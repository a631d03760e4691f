"""Pytest configuration and fixtures."""

import os
from contextlib import ExitStack
from unittest.mock import patch

import pytest

from tests.fakes.fake_supabase import FakeSupabase

# Every module that talks to the store through get_supabase()
SUPABASE_CONSUMERS = [
    "agent_memory.db.conversation_history",
    "agent_memory.db.memory_summaries",
    "agent_memory.db.context_settings",
    "agent_memory.db.suggestions",
    "agent_memory.db.activity_log",
    "agent_memory.db.workspace_signals",
    "agent_memory.core.llm_usage",
]


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["AGENT_MEMORY_ENV"] = "test"

    from agent_memory.core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_supabase():
    """In-memory store patched in for every db module."""
    fake = FakeSupabase()
    with ExitStack() as stack:
        for module in SUPABASE_CONSUMERS:
            stack.enter_context(patch(f"{module}.get_supabase", return_value=fake))
        yield fake


@pytest.fixture
def workspace_id():
    return "11111111-1111-1111-1111-111111111111"

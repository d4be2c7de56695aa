"""Shared test fixtures."""

from __future__ import annotations

import pytest
from fakes import FakeClock, ScriptedModel

from jeff.cache.store import ResponseCache
from jeff.llm.orchestrator import ToolCallOrchestrator
from jeff.pipeline import ChatPipeline
from jeff.ratelimit import RateLimiter
from jeff.tools.registry import ToolRegistry


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tools() -> ToolRegistry:
    """Fresh registry with no real network tools."""
    return ToolRegistry()


@pytest.fixture
def make_pipeline(tools: ToolRegistry, clock: FakeClock):
    """Build a ChatPipeline around a ScriptedModel."""

    def _make(model: ScriptedModel, *, max_requests: int = 20) -> ChatPipeline:
        return ChatPipeline(
            orchestrator=ToolCallOrchestrator(model, tools=tools, max_rounds=3),
            cache=ResponseCache(ttl_seconds=3600, clock=clock),
            rate_limiter=RateLimiter(max_requests=max_requests, window_seconds=60, clock=clock),
            system_prompt=lambda: "You are Jeff.",
        )

    return _make

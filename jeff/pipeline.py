"""Request pipeline: rate limit, clean, cache, orchestrate, normalize, store."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from jeff.cache.fingerprint import compute_fingerprint
from jeff.cache.store import ResponseCache
from jeff.chat.models import ChatResponse, ConversationMessage
from jeff.chat.sanitize import sanitize_text, validate_history
from jeff.config import settings
from jeff.errors import ChatError, InputError, RateLimitedError, ToolLoopExhaustedError
from jeff.llm.normalize import normalize_reply
from jeff.llm.orchestrator import ToolCallOrchestrator
from jeff.llm.prompt import assemble_prompt, build_system_prompt
from jeff.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatRequest:
    """A request that passed input validation."""

    message: str
    history: list[ConversationMessage]
    cacheable: bool = True


@dataclass(frozen=True)
class PipelineResult:
    """Transport-agnostic outcome: an HTTP-style status and a JSON body."""

    status: int
    body: dict[str, Any]
    cached: bool = False


def parse_request(payload: Any) -> ChatRequest:
    """Validate the inbound body. Raises InputError before anything else runs."""
    if not isinstance(payload, Mapping):
        raise InputError("Request body must be a JSON object")

    raw_message = payload.get("message")
    if not isinstance(raw_message, str) or not raw_message.strip():
        raise InputError("Message is required")
    if len(raw_message) > settings.max_raw_message_length:
        raise InputError("Message is too long")

    message = sanitize_text(raw_message)
    if not message:
        raise InputError("Message is required")

    return ChatRequest(
        message=message,
        history=validate_history(payload.get("conversationHistory", [])),
        cacheable=payload.get("noCache") is not True,
    )


class ChatPipeline:
    """One chat request end to end.

    The cache and rate limiter are shared across requests and owned by
    whoever builds the pipeline; the pipeline never creates them.
    """

    def __init__(
        self,
        orchestrator: ToolCallOrchestrator,
        cache: ResponseCache,
        rate_limiter: RateLimiter,
        system_prompt: Callable[[], str] = build_system_prompt,
    ) -> None:
        self.orchestrator = orchestrator
        self.cache = cache
        self.rate_limiter = rate_limiter
        self._system_prompt = system_prompt

    async def handle(self, payload: Any, client_id: str) -> PipelineResult:
        """Run the pipeline. Every outcome, including bugs, becomes a result."""
        try:
            return await self._handle(payload, client_id)
        except ChatError as exc:
            logger.warning("Chat request failed (%s): %s", type(exc).__name__, exc)
            return PipelineResult(status=exc.status, body=exc.to_payload())
        except Exception:
            logger.exception("Unexpected error handling chat request")
            return PipelineResult(status=500, body=ChatError().to_payload())

    async def _handle(self, payload: Any, client_id: str) -> PipelineResult:
        if not self.rate_limiter.allow(client_id):
            raise RateLimitedError(f"Too many requests from {client_id}")

        request = parse_request(payload)
        key = compute_fingerprint(request.message, request.history)

        if request.cacheable:
            cached = self.cache.get(key)
            if cached is not None:
                self.cache.record_hit()
                logger.info("Cache hit %s", key[:12])
                return PipelineResult(status=200, body=cached.to_payload(), cached=True)
            self.cache.record_miss()
            logger.info("Cache miss %s", key[:12])

        prompt = assemble_prompt(self._system_prompt(), request.history, request.message)
        result = await self.orchestrator.run(prompt)

        if not result.done:
            if isinstance(result.error, ToolLoopExhaustedError):
                degraded = ChatResponse(message=result.error.user_message, link=None)
                return PipelineResult(status=200, body=degraded.to_payload())
            raise result.error or ChatError("Orchestration failed without an error")

        reply = normalize_reply(result.text)
        if reply.fallback or result.capped:
            logger.info("Not caching degraded reply %s", key[:12])
        elif request.cacheable:
            self.cache.set(key, reply.response)
        return PipelineResult(status=200, body=reply.response.to_payload())

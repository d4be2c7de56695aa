"""Async Claude API client with bounded retry and error translation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import anthropic

from jeff.config import settings
from jeff.errors import ChatError, UpstreamCapacityError, UpstreamTransportError
from jeff.tools.base import ToolInvocation

logger = logging.getLogger(__name__)

# 529 is Anthropic's "overloaded" status
CAPACITY_STATUS_CODES = frozenset({429, 529})


@dataclass
class ModelReply:
    """One model turn: its text, any tool calls, and the raw blocks for replay."""

    text: str
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    content: list[dict[str, Any]] = field(default_factory=list)


def _serialize_content(content: list[Any]) -> list[dict[str, Any]]:
    """Convert SDK content blocks to plain dicts for message history."""
    result: list[dict[str, Any]] = []
    for block in content:
        if block.type == "text":
            result.append({"type": "text", "text": block.text})
        elif block.type == "tool_use":
            result.append({
                "type": "tool_use",
                "id": block.id,
                "name": block.name,
                "input": block.input,
            })
    return result


def _to_reply(response: Any) -> ModelReply:
    text = "".join(b.text for b in response.content if b.type == "text")
    tool_calls = [
        ToolInvocation(id=b.id, name=b.name, arguments=dict(b.input or {}))
        for b in response.content
        if b.type == "tool_use"
    ]
    return ModelReply(
        text=text,
        tool_calls=tool_calls,
        content=_serialize_content(response.content),
    )


def translate_error(exc: anthropic.APIError) -> ChatError:
    """Map an SDK error onto the pipeline's error taxonomy."""
    if isinstance(exc, anthropic.APITimeoutError):
        return UpstreamTransportError(f"Model call timed out: {exc}")
    if isinstance(exc, anthropic.APIConnectionError):
        return UpstreamTransportError(f"Could not reach model provider: {exc}")
    if isinstance(exc, anthropic.APIStatusError):
        if exc.status_code in CAPACITY_STATUS_CODES:
            return UpstreamCapacityError(f"Provider throttled request ({exc.status_code})")
        return UpstreamTransportError(f"Provider returned {exc.status_code}: {exc.message}")
    return UpstreamTransportError(str(exc))


def _should_retry(exc: anthropic.APIError) -> bool:
    """Connection problems and provider 5xx are worth another try; nothing else is."""
    if isinstance(exc, anthropic.APIConnectionError):
        return True
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code >= 500 and exc.status_code not in CAPACITY_STATUS_CODES
    return False


class ModelClient:
    """Thin wrapper over ``anthropic.AsyncAnthropic.messages.create``.

    Transport failures are retried up to ``max_attempts`` times with
    exponential backoff. Capacity errors are raised straight away so the
    caller can tell the student to wait.
    """

    def __init__(
        self,
        client: anthropic.AsyncAnthropic | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
    ) -> None:
        self._client = client
        self.model = model or settings.claude_model
        self.max_tokens = max_tokens or settings.max_tokens
        self.max_attempts = max(1, max_attempts or settings.model_max_attempts)
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.model_retry_delay_seconds
        )

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Lazily initialize the Anthropic client."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.model_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def generate(
        self,
        messages: list[dict[str, Any]],
        *,
        system: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> ModelReply:
        """Run one model turn.

        Raises:
            UpstreamCapacityError: The provider is throttling or overloaded.
            UpstreamTransportError: The provider could not be reached, or
                kept failing after every retry.
        """
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools

        client = self._get_client()
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await client.messages.create(**kwargs)
                return _to_reply(response)
            except anthropic.APIError as exc:
                error = translate_error(exc)
                if not _should_retry(exc) or attempt == self.max_attempts:
                    logger.error(
                        "Model call failed (attempt %d/%d): %s",
                        attempt,
                        self.max_attempts,
                        error.detail,
                    )
                    raise error from exc

                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Model call failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt,
                    self.max_attempts,
                    delay,
                    error.detail,
                )
                await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises.
        raise UpstreamTransportError("Model call was never attempted")

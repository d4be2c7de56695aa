"""Error taxonomy for the chat pipeline.

Every error that can end a request carries the HTTP status, a short error
label and a friendly message for the student. ``ChatPipeline`` turns them into
the ``{"error", "message", "link": null}`` shape.
"""

from __future__ import annotations

from typing import Any


class ChatError(Exception):
    """Base class for failures that end a chat request."""

    status: int = 500
    error: str = "Failed to generate response"
    user_message: str = (
        "Sorry, I encountered an error. Please try again! If this keeps happening, "
        "the AI service might be temporarily busy."
    )
    retryable: bool = False

    def __init__(self, detail: str = "", *, user_message: str | None = None) -> None:
        super().__init__(detail or self.error)
        self.detail = detail
        if user_message is not None:
            self.user_message = user_message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.user_message, "link": None}


class InputError(ChatError):
    """The request was rejected before reaching the cache or the model."""

    status = 400
    error = "Invalid request"
    user_message = "I didn't catch that. Could you send your question again?"

    def __init__(self, detail: str, *, user_message: str | None = None) -> None:
        super().__init__(detail, user_message=user_message)
        self.error = detail


class RateLimitedError(ChatError):
    """The client sent too many requests in the current window."""

    status = 429
    error = "Rate limit exceeded"
    user_message = (
        "Whoa there! You're asking questions too fast! 😅 Give me a moment to catch "
        "my breath. Try again in a minute!"
    )
    retryable = True


class UpstreamCapacityError(ChatError):
    """The model provider is throttling us or the quota is exhausted."""

    status = 429
    error = "API rate limit"
    user_message = (
        "I'm getting too many requests right now! 😅 Wait about 30 seconds and try "
        "again."
    )
    retryable = True


class UpstreamTransportError(ChatError):
    """The model provider could not be reached or kept failing."""

    status = 502
    error = "Upstream unavailable"
    retryable = True


class ToolLoopExhaustedError(ChatError):
    """The model kept asking for tools and never produced an answer."""

    error = "Tool loop exhausted"
    user_message = (
        "Sorry, I couldn't put an answer together for that one. Could you try "
        "asking it a different way?"
    )

"""Turn raw model text into a ChatResponse.

The model is asked for ``{"message": ..., "link": ...}`` JSON but does not
always comply. Anything that is not usable JSON is passed through as a plain
message, so a malformed reply still reaches the student.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from jeff.chat.models import ChatResponse, Link

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "Sorry, I'm having trouble answering that right now. Could you try rephrasing "
    "your question?"
)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)


@dataclass(frozen=True)
class StructuredOutput:
    data: dict[str, Any]


@dataclass(frozen=True)
class PlainTextOutput:
    text: str


ParsedOutput = StructuredOutput | PlainTextOutput


def strip_fences(text: str) -> str:
    """Remove markdown code fences the model likes to wrap JSON in."""
    return _FENCE_RE.sub("", text).strip()


def parse_output(raw_text: str) -> ParsedOutput:
    text = strip_fences(raw_text)
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return PlainTextOutput(text)
    if not isinstance(data, dict):
        return PlainTextOutput(text)
    return StructuredOutput(data)


def _coerce_link(value: Any) -> Link | None:
    if not isinstance(value, Mapping):
        return None
    fields = {key: value.get(key) for key in ("url", "text", "name")}
    if not all(isinstance(v, str) and v.strip() for v in fields.values()):
        return None
    if urlparse(fields["url"]).scheme not in ("http", "https"):
        return None
    return Link(**fields)


@dataclass(frozen=True)
class NormalizedReply:
    """A ChatResponse plus whether the apology stood in for the model's answer.

    Fallback replies are still sent to the student but must not be cached.
    """

    response: ChatResponse
    fallback: bool = False


def normalize_reply(raw_text: str) -> NormalizedReply:
    """Build a ChatResponse from whatever the model said. Never raises."""
    if not isinstance(raw_text, str):
        raw_text = ""

    parsed = parse_output(raw_text)
    if isinstance(parsed, PlainTextOutput):
        if not parsed.text:
            logger.warning("Model reply was empty")
            return NormalizedReply(ChatResponse(message=APOLOGY_MESSAGE), fallback=True)
        logger.info("Model reply was not JSON; returning it as plain text")
        return NormalizedReply(ChatResponse(message=parsed.text, link=None))

    message = parsed.data.get("message")
    link = _coerce_link(parsed.data.get("link"))
    if not isinstance(message, str) or not message.strip():
        logger.warning("Model JSON had no usable message field")
        return NormalizedReply(ChatResponse(message=APOLOGY_MESSAGE, link=link), fallback=True)
    return NormalizedReply(ChatResponse(message=message, link=link))


def normalize_response(raw_text: str) -> ChatResponse:
    return normalize_reply(raw_text).response
"""Input sanitization for user-supplied text and conversation history.

This is a best-effort filter that keeps obvious markup and script fragments
out of the model prompt. It is not a security boundary: it does not catch
every injection vector, and callers must not rely on it as one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from jeff.chat.models import ConversationMessage
from jeff.config import settings

logger = logging.getLogger(__name__)

VALID_ROLES = ("user", "assistant")

_MARKUP_RE = re.compile(r"[<>]")
_SCRIPT_SCHEME_RE = re.compile(r"\b(?:javascript|vbscript|data)\s*:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"\bon\w+\s*=", re.IGNORECASE)


def sanitize_text(value: Any, max_length: int | None = None) -> str:
    """Strip unsafe fragments from *value* and cap its length.

    Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""

    limit = max_length if max_length is not None else settings.message_max_length
    text = _MARKUP_RE.sub("", value)
    text = _SCRIPT_SCHEME_RE.sub("", text)
    text = _EVENT_HANDLER_RE.sub("", text)
    return text.strip()[:limit]


def _is_valid_entry(entry: Any) -> bool:
    return (
        isinstance(entry, Mapping)
        and entry.get("role") in VALID_ROLES
        and isinstance(entry.get("content"), str)
    )


def validate_history(value: Any, max_messages: int | None = None) -> list[ConversationMessage]:
    """Turn a client-supplied history into a bounded list of clean turns.

    Only the last *max_messages* raw entries are looked at; malformed ones
    among them are dropped rather than repaired.
    """
    if not isinstance(value, list):
        return []

    limit = max_messages if max_messages is not None else settings.history_max_messages
    recent = value[-limit:] if limit > 0 else []
    valid = [entry for entry in recent if _is_valid_entry(entry)]
    if len(valid) < len(recent):
        logger.debug("Dropped %d malformed history entries", len(recent) - len(valid))

    return [
        ConversationMessage(role=entry["role"], content=sanitize_text(entry["content"]))
        for entry in valid
    ]

"""Cache keys for chat requests."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence

from jeff.chat.models import ConversationMessage
from jeff.config import settings


def compute_fingerprint(
    message: str,
    history: Sequence[ConversationMessage],
    window: int | None = None,
) -> str:
    """SHA-256 over the last *window* history turns plus the current message.

    Both inputs must already be sanitized. The window is narrower than the
    retained history so requests that only differ in older turns share a key.
    Turns are hashed as a JSON array, so no content can imitate a turn
    boundary.
    """
    size = window if window is not None else settings.fingerprint_window
    tail = list(history)[-size:] if size > 0 else []
    payload = {"history": [[m.role, m.content] for m in tail], "message": message}
    encoded = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()

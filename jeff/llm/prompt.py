"""System prompt and per-request context assembly."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from jeff.chat.models import ConversationMessage
from jeff.config import settings

logger = logging.getLogger(__name__)

ROLE_LABELS = {"user": "User", "assistant": "Jeff"}

HISTORY_HEADER = "CONVERSATION HISTORY (Read this carefully before responding):"
CURRENT_MESSAGE_MARKER = "CURRENT USER MESSAGE:"
REPLY_CUE = "Jeff (respond in JSON format, referencing conversation context if relevant):"


def _read_config(filename: str) -> str:
    """Read a config file, returning empty string if missing."""
    path = settings.config_dir / filename
    if path.exists():
        return path.read_text(encoding="utf-8")
    logger.warning("Config file %s not found", path)
    return ""


def build_system_prompt() -> str:
    """Persona instructions followed by the NaviGrad resource dictionary."""
    sections = []

    persona = _read_config("JEFF.md").strip()
    if persona:
        sections.append(persona)

    raw = _read_config("navigrad.json")
    if raw:
        resources = json.loads(raw)
        sections.append(
            "# Available NaviGrad Resources\n\n" + json.dumps(resources, indent=2)
        )

    return "\n\n---\n\n".join(sections)


@dataclass(frozen=True)
class AssembledPrompt:
    """Everything the model needs for the first turn of a request."""

    system: str
    context: str

    def to_messages(self) -> list[dict[str, Any]]:
        return [{"role": "user", "content": self.context}]


def render_history(history: Sequence[ConversationMessage]) -> str:
    lines = [HISTORY_HEADER]
    for msg in history:
        lines.append(f"{ROLE_LABELS[msg.role]}: {msg.content}")
    return "\n".join(lines)


def assemble_prompt(
    system: str,
    history: Sequence[ConversationMessage],
    message: str,
) -> AssembledPrompt:
    """Render history turns and the current message into one context block.

    Inputs are expected to be validated already; nothing here filters or
    rewrites them.
    """
    blocks = []
    if history:
        blocks.append(render_history(history))
    blocks.append(f"{CURRENT_MESSAGE_MARKER} {message}")
    blocks.append(REPLY_CUE)
    return AssembledPrompt(system=system, context="\n\n".join(blocks))

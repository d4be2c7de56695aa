"""Request and response shapes shared across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class ConversationMessage:
    """A single validated conversation turn."""

    role: Role
    content: str


class Link(BaseModel):
    """A NaviGrad page the client renders as a button."""

    url: str
    text: str
    name: str


class ChatResponse(BaseModel):
    """The only shape a successful chat request ever returns."""

    message: str
    link: Link | None = Field(default=None)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

"""Bounded tool-calling loop between the model and the tool registry."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from jeff.config import settings
from jeff.errors import (
    ChatError,
    ToolLoopExhaustedError,
    UpstreamCapacityError,
    UpstreamTransportError,
)
from jeff.tools.base import ToolInvocation, ToolResult
from jeff.tools.registry import ToolRegistry
from jeff.tools.registry import registry as default_registry

if TYPE_CHECKING:
    from jeff.llm.client import ModelClient
    from jeff.llm.prompt import AssembledPrompt

logger = logging.getLogger(__name__)


class OrchestrationState(StrEnum):
    INVOKING = "invoking"
    AWAITING_TOOL_RESULT = "awaiting_tool_result"
    DONE = "done"
    FAILED = "failed"


@dataclass
class OrchestrationResult:
    """Terminal outcome of one run: raw text when DONE, an error when FAILED.

    ``capped`` marks a DONE that the round cap forced: its text is whatever the
    model said before its last unanswered tool request.
    """

    state: OrchestrationState
    text: str = ""
    error: ChatError | None = None
    iterations: int = 0
    tool_calls: int = 0
    capped: bool = False

    @property
    def done(self) -> bool:
        return self.state is OrchestrationState.DONE


def _tool_result_block(call: ToolInvocation, result: ToolResult) -> dict[str, Any]:
    return {
        "type": "tool_result",
        "tool_use_id": call.id,
        "content": result.to_content(),
        "is_error": not result.success,
    }


class ToolCallOrchestrator:
    """Drive the model until it answers in text or the round cap is hit.

    Each round makes exactly one model call. When the model asks for tools,
    every requested call runs concurrently and all results (failures
    included) are appended to the working messages before the next round.
    If the model still wants tools on the last allowed round, those calls are
    not executed: the run ends DONE with the latest text the model produced,
    or FAILED when it never produced any.
    """

    def __init__(
        self,
        model: ModelClient,
        tools: ToolRegistry | None = None,
        max_rounds: int | None = None,
    ) -> None:
        self._model = model
        self._tools = tools if tools is not None else default_registry
        self.max_rounds = max(1, max_rounds or settings.max_tool_rounds)

    async def _execute_all(self, calls: list[ToolInvocation]) -> list[ToolResult]:
        outcomes = await asyncio.gather(
            *(self._tools.execute(call.name, call.arguments) for call in calls),
            return_exceptions=True,
        )
        results: list[ToolResult] = []
        for call, outcome in zip(calls, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error("Tool '%s' raised %r", call.name, outcome)
                results.append(ToolResult(error=f"Tool '{call.name}' failed: {outcome}"))
            else:
                results.append(outcome)
        return results

    async def run(self, prompt: AssembledPrompt) -> OrchestrationResult:
        messages = prompt.to_messages()
        tool_schemas = self._tools.get_schemas()
        latest_text = ""
        tool_calls = 0
        iteration = 0

        while iteration < self.max_rounds:
            iteration += 1
            logger.debug("Round %d: %s", iteration, OrchestrationState.INVOKING)
            try:
                reply = await self._model.generate(
                    messages, system=prompt.system, tools=tool_schemas
                )
            except (UpstreamTransportError, UpstreamCapacityError) as exc:
                logger.warning("Round %d: model call failed: %s", iteration, exc)
                return OrchestrationResult(
                    OrchestrationState.FAILED,
                    error=exc,
                    iterations=iteration,
                    tool_calls=tool_calls,
                )

            if reply.text.strip():
                latest_text = reply.text

            if not reply.tool_calls:
                return OrchestrationResult(
                    OrchestrationState.DONE,
                    text=reply.text,
                    iterations=iteration,
                    tool_calls=tool_calls,
                )

            if iteration == self.max_rounds:
                break

            logger.info(
                "Round %d: %d tool call(s): %s",
                iteration,
                len(reply.tool_calls),
                ", ".join(c.name for c in reply.tool_calls),
            )
            logger.debug("Round %d: %s", iteration, OrchestrationState.AWAITING_TOOL_RESULT)
            tool_calls += len(reply.tool_calls)
            results = await self._execute_all(reply.tool_calls)

            messages.append({"role": "assistant", "content": reply.content})
            messages.append({
                "role": "user",
                "content": [
                    _tool_result_block(call, result)
                    for call, result in zip(reply.tool_calls, results, strict=True)
                ],
            })

        logger.warning("Hit max tool rounds (%d)", self.max_rounds)
        if latest_text:
            return OrchestrationResult(
                OrchestrationState.DONE,
                text=latest_text,
                iterations=iteration,
                tool_calls=tool_calls,
                capped=True,
            )
        return OrchestrationResult(
            OrchestrationState.FAILED,
            error=ToolLoopExhaustedError(
                f"No answer after {self.max_rounds} rounds of tool calls"
            ),
            iterations=iteration,
            tool_calls=tool_calls,
        )

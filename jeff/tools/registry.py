"""Catalog of the tools Jeff may call, and the one place they get executed."""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from jeff.tools.base import ToolParams, ToolResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    ToolHandler = Callable[..., Awaitable[ToolResult]]

logger = logging.getLogger(__name__)

EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDef:
    name: str
    description: str
    handler: ToolHandler
    params_model: type[ToolParams] | None = None

    def schema(self) -> dict[str, Any]:
        """Anthropic tool definition for this tool."""
        if self.params_model is None:
            input_schema = dict(EMPTY_INPUT_SCHEMA)
        else:
            input_schema = self.params_model.model_json_schema()
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": input_schema,
        }

    def bind(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Turn raw model arguments into handler kwargs.

        Raises ValidationError when a params model rejects them.
        """
        if self.params_model is None:
            return dict(arguments)
        return self.params_model.model_validate(arguments).model_dump()


class ToolRegistry:
    """Named async tools the orchestrator can hand to the model.

    Register with the decorator::

        @registry.tool(name="read_webpage", description="...", params_model=...)
        async def read_webpage(url: str, max_length: int = 5000) -> ToolResult:
            ...

    ``execute`` never raises. Whatever goes wrong comes back as a
    ToolResult carrying an error the model can read.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDef] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def tool(
        self,
        *,
        name: str,
        description: str,
        params_model: type[ToolParams] | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        def register(fn: ToolHandler) -> ToolHandler:
            if not inspect.iscoroutinefunction(fn):
                raise TypeError(f"Tool handler '{name}' must be an async function")
            if name in self._tools:
                logger.warning("Replacing registered tool '%s'", name)
            self._tools[name] = ToolDef(name, description, fn, params_model)
            return fn

        return register

    def get(self, name: str) -> ToolDef | None:
        return self._tools.get(name)

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_schemas(self) -> list[dict[str, Any]]:
        return [tool_def.schema() for tool_def in self._tools.values()]

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        tool_def = self._tools.get(name)
        if tool_def is None:
            logger.warning("Model asked for unknown tool '%s'", name)
            return ToolResult(error=f"Unknown tool: {name}")

        try:
            kwargs = tool_def.bind(arguments)
        except ValidationError as exc:
            logger.warning("Rejected arguments for '%s': %s", name, arguments)
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            )
            return ToolResult(error=f"Invalid arguments for '{name}': {problems}")

        logger.info("Running tool '%s' with %s", name, kwargs)
        started = time.monotonic()
        try:
            result = await tool_def.handler(**kwargs)
        except Exception:
            logger.exception("Tool '%s' crashed after %.2fs", name, time.monotonic() - started)
            return ToolResult(error=f"Tool '{name}' failed. Check logs for details.")

        elapsed = time.monotonic() - started
        if result.success:
            logger.info("Tool '%s' finished in %.2fs", name, elapsed)
        else:
            logger.warning("Tool '%s' reported an error in %.2fs: %s", name, elapsed, result.error)
        return result


# Shared catalog; tool modules register into it on import.
registry = ToolRegistry()

"""aiohttp HTTP surface for the chat pipeline."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiohttp import web

from jeff.config import settings
from jeff.errors import InputError
from jeff.pipeline import ChatPipeline

logger = logging.getLogger(__name__)

PIPELINE_KEY = web.AppKey("pipeline", ChatPipeline)


async def _handle_chat(request: web.Request) -> web.Response:
    """POST /api/chat: run one message through the pipeline."""
    pipeline = request.app[PIPELINE_KEY]
    try:
        payload: Any = await request.json()
    except ValueError:
        error = InputError("Invalid JSON body")
        return web.json_response(error.to_payload(), status=error.status)

    client_id = request.remote or "unknown"
    result = await pipeline.handle(payload, client_id=client_id)
    return web.json_response(result.body, status=result.status)


async def _health(request: web.Request) -> web.Response:
    """GET /api/health: basic liveness check."""
    return web.json_response({"status": "ok", "message": "Jeff backend is running!"})


async def _cache_stats(request: web.Request) -> web.Response:
    """GET /api/cache/stats: read-only cache counters."""
    pipeline = request.app[PIPELINE_KEY]
    return web.json_response(pipeline.cache.stats())


def create_web_app(pipeline: ChatPipeline) -> web.Application:
    """Build the aiohttp Application with routes."""
    app = web.Application()
    app[PIPELINE_KEY] = pipeline
    app.router.add_post("/api/chat", _handle_chat)
    app.router.add_get("/api/health", _health)
    app.router.add_get("/api/cache/stats", _cache_stats)
    return app


class ChatServer:
    """Manages the aiohttp server lifecycle and the background sweeps."""

    def __init__(self, pipeline: ChatPipeline, port: int | None = None) -> None:
        self.pipeline = pipeline
        self.port = port or settings.port
        self._runner: web.AppRunner | None = None
        self._tasks: list[asyncio.Task] = []

    async def start(self) -> None:
        """Start listening, then launch the cache and rate-limiter sweeps."""
        app = create_web_app(self.pipeline)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, settings.host, self.port)
        await site.start()

        self._tasks = [
            asyncio.create_task(self.pipeline.cache.sweep_loop()),
            asyncio.create_task(self.pipeline.rate_limiter.sweep_loop()),
        ]
        logger.info("Jeff backend listening on port %d", self.port)
        logger.info(
            "Rate limit: %d requests per %ds",
            self.pipeline.rate_limiter.max_requests,
            self.pipeline.rate_limiter.window_seconds,
        )

    async def stop(self) -> None:
        """Cancel the sweeps and shut down the server gracefully."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Jeff backend stopped")

"""Jeff backend entry point."""

import asyncio
import logging

from jeff.cache.store import ResponseCache
from jeff.config import settings
from jeff.llm.client import ModelClient
from jeff.llm.orchestrator import ToolCallOrchestrator
from jeff.pipeline import ChatPipeline
from jeff.ratelimit import RateLimiter
from jeff.server import ChatServer
from jeff.tools import registry

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def build_pipeline() -> ChatPipeline:
    """Wire the shared cache and limiter into a pipeline."""
    orchestrator = ToolCallOrchestrator(ModelClient(), tools=registry)
    return ChatPipeline(
        orchestrator=orchestrator,
        cache=ResponseCache(),
        rate_limiter=RateLimiter(),
    )


async def _serve() -> None:
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is empty, every model call will fail")

    server = ChatServer(build_pipeline())
    try:
        await server.start()
        logger.info("Using model %s with tools: %s", settings.claude_model, registry.tool_names)
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main() -> None:
    """Run the HTTP server until interrupted."""
    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()

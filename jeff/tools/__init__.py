"""Tool framework: import tool modules here to register them."""

# Import tool modules so their @registry.tool() decorators execute.
from jeff.tools import web_tools  # noqa: F401
from jeff.tools.registry import registry

__all__ = ["registry"]

"""Browser inspection tools for AI assistants, served over MCP."""

from shakespeare_mcp.config import SERVER_VERSION as __version__

__all__ = ["__version__"]

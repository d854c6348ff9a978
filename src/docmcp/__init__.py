"""docmcp — MCP tool router over HTTP for JSON document collections."""

__version__ = "1.0.0"

"""docmcp MCP Server — HTTP protocol implementation."""

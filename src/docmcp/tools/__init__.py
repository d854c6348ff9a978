"""
docmcp MCP Tools

Modules:
  catalog         — static tool descriptors and lookup
  document_tools  — backing operations over the document store
  results         — ToolResult / SoftError outcome types
"""

from docmcp.tools.catalog import TOOLS, ToolNotFoundError, get_tool
from docmcp.tools.document_tools import DocumentTools
from docmcp.tools.results import RequestCancelled, SoftError, ToolResult

__all__ = [
    "TOOLS",
    "ToolNotFoundError",
    "get_tool",
    "DocumentTools",
    "RequestCancelled",
    "SoftError",
    "ToolResult",
]

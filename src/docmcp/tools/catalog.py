"""
Tool Catalog — static descriptors for every callable tool

Tools:
  get_recent_documents           — N most recent documents by _ts
  find_document_by_id            — single document lookup
  get_customer_services          — distinct services used by a customer
  get_customer_service_spending  — total spend for a customer on one service
  list_databases                 — database ids
  list_collections               — container ids in a database
  text_search                    — substring match on one property
  get_approximate_schema         — property types sampled from recent documents
"""

from typing import Any, Dict, List

MAX_RESULTS = 20

_DATABASE_ID = {"type": "string", "description": "Database id containing the container"}
_CONTAINER_ID = {"type": "string", "description": "Container id to query"}
_CUSTOMER_NAME = {"type": "string", "description": "Customer name to filter on (exact match)"}


class ToolNotFoundError(ValueError):
    """tools/call named a tool that is not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


TOOLS: List[Dict[str, Any]] = [
    {
        "name": "get_recent_documents",
        "description": (
            "Gets the most recent N documents ordered by timestamp (_ts DESC) "
            "from the specified database/container."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
                "containerId": _CONTAINER_ID,
                "n": {"type": "integer", "description": f"Number of documents to return (1-{MAX_RESULTS})"},
            },
            "required": ["databaseId", "containerId", "n"],
        },
    },
    {
        "name": "find_document_by_id",
        "description": "Find a document by its id in the specified database/container.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
                "containerId": _CONTAINER_ID,
                "id": {"type": "string", "description": "The id of the document to find"},
            },
            "required": ["databaseId", "containerId", "id"],
        },
    },
    {
        "name": "get_customer_services",
        "description": (
            "Lists the distinct services (service_name, service_family) a customer "
            "has records for in the specified database/container."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
                "containerId": _CONTAINER_ID,
                "customerName": _CUSTOMER_NAME,
            },
            "required": ["databaseId", "containerId", "customerName"],
        },
    },
    {
        "name": "get_customer_service_spending",
        "description": (
            "Gets the total spending (sum of amount) and transaction count for a "
            "customer on one service in the specified database/container."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
                "containerId": _CONTAINER_ID,
                "customerName": _CUSTOMER_NAME,
                "serviceName": {"type": "string", "description": "Service name to filter on (exact match)"},
            },
            "required": ["databaseId", "containerId", "customerName", "serviceName"],
        },
    },
    {
        "name": "list_databases",
        "description": "Lists the ids of all databases in the store.",
        "inputSchema": {
            "type": "object",
            "properties": {},
            "required": [],
        },
    },
    {
        "name": "list_collections",
        "description": "Lists the container ids in the specified database.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
            },
            "required": ["databaseId"],
        },
    },
    {
        "name": "text_search",
        "description": (
            "Finds up to N documents whose property contains the search phrase "
            "(case-insensitive), newest first."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
                "containerId": _CONTAINER_ID,
                "property": {"type": "string", "description": "Top-level property to search"},
                "searchPhrase": {"type": "string", "description": "Text to look for"},
                "n": {"type": "integer", "description": f"Number of documents to return (1-{MAX_RESULTS})"},
            },
            "required": ["databaseId", "containerId", "property", "searchPhrase", "n"],
        },
    },
    {
        "name": "get_approximate_schema",
        "description": (
            "Approximates the schema of a container by sampling its most recent "
            "documents and reporting the JSON types seen for each property."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "databaseId": _DATABASE_ID,
                "containerId": _CONTAINER_ID,
            },
            "required": ["databaseId", "containerId"],
        },
    },
]

_BY_NAME = {t["name"].lower(): t for t in TOOLS}


def get_tool(name: str) -> Dict[str, Any]:
    """Case-insensitive catalog lookup. Raises ToolNotFoundError."""
    tool = _BY_NAME.get(name.lower())
    if tool is None:
        raise ToolNotFoundError(name)
    return tool

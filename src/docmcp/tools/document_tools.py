"""
Document Tools — backing operations for the tool catalog

Every operation takes typed arguments (already coerced against the catalog
schema) and returns a ToolResult or a SoftError. Blank parameters, local range
checks and store failures are soft errors; anything else propagates and the
router turns it into a hard error.
"""

import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from docmcp.db.sqlite import DocumentStore, QueryInterrupted, StoreError
from docmcp.server.logger import get_logger
from docmcp.tools.catalog import MAX_RESULTS, ToolNotFoundError
from docmcp.tools.results import RequestCancelled, SoftError, ToolResult

log = get_logger("tools.documents")

SCHEMA_SAMPLE_SIZE = 10

Outcome = Union[ToolResult, SoftError]
Signal = Optional[threading.Event]


class _BlankParameter(ValueError):
    pass


def _require(**params: Any):
    for name, value in params.items():
        if value is None or not str(value).strip():
            raise _BlankParameter(f"Parameter '{name}' is required.")


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


class DocumentTools:
    """Backing operation collaborator over a shared DocumentStore."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._handlers: Dict[str, Callable[[Dict[str, Any], Signal], Awaitable[Outcome]]] = {
            "get_recent_documents": self._get_recent_documents,
            "find_document_by_id": self._find_document_by_id,
            "get_customer_services": self._get_customer_services,
            "get_customer_service_spending": self._get_customer_service_spending,
            "list_databases": self._list_databases,
            "list_collections": self._list_collections,
            "text_search": self._text_search,
            "get_approximate_schema": self._get_approximate_schema,
        }

    async def execute(
        self,
        name: str,
        args: Dict[str, Any],
        cancelled: Signal = None,
    ) -> Outcome:
        handler = self._handlers.get(name)
        if not handler:
            raise ToolNotFoundError(name)

        if cancelled is not None and cancelled.is_set():
            raise RequestCancelled(name)

        try:
            return await handler(args, cancelled)
        except QueryInterrupted:
            log.info(f"{name} interrupted: caller went away")
            raise RequestCancelled(name)
        except _BlankParameter as exc:
            log.warning(f"Invalid parameter for {name}: {exc}")
            return SoftError.error(str(exc))
        except StoreError as exc:
            log.error(f"Store error in {name}: {exc} (status={exc.status_code})")
            return SoftError.error(str(exc), exc.status_code)

    # -- operations --

    async def _get_recent_documents(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id, container_id, n = args["databaseId"], args["containerId"], args["n"]
        _require(databaseId=database_id, containerId=container_id)

        if n < 1 or n > MAX_RESULTS:
            return SoftError.error(
                f"Parameter 'n' must be a whole number between 1 and {MAX_RESULTS}."
            )

        log.info(f"Getting {n} recent documents from {database_id}/{container_id}")
        docs = await self._store.recent(database_id, container_id, n, cancelled=cancelled)
        log.info(f"Retrieved {len(docs)} recent documents")
        return ToolResult(docs)

    async def _find_document_by_id(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id, container_id, doc_id = args["databaseId"], args["containerId"], args["id"]
        _require(databaseId=database_id, containerId=container_id, id=doc_id)

        log.info(f"Finding document {doc_id} in {database_id}/{container_id}")
        doc = await self._store.find_by_id(database_id, container_id, doc_id, cancelled=cancelled)
        if doc is None:
            log.info(f"No document found with id {doc_id}")
            return SoftError({"message": "No document found with the specified id."})
        return ToolResult(doc)

    async def _get_customer_services(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id, container_id = args["databaseId"], args["containerId"]
        customer_name = args["customerName"]
        _require(databaseId=database_id, containerId=container_id, customerName=customer_name)

        services = await self._store.distinct_services(
            database_id, container_id, customer_name, cancelled=cancelled,
        )
        log.info(f"Found {len(services)} services for customer {customer_name}")
        return ToolResult({
            "customer_name": customer_name,
            "services": services,
            "count": len(services),
        })

    async def _get_customer_service_spending(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id, container_id = args["databaseId"], args["containerId"]
        customer_name, service_name = args["customerName"], args["serviceName"]
        _require(
            databaseId=database_id, containerId=container_id,
            customerName=customer_name, serviceName=service_name,
        )

        row = await self._store.service_spending(
            database_id, container_id, customer_name, service_name, cancelled=cancelled,
        )
        if row is None:
            log.info(f"No spending data for {customer_name} on {service_name}")
            return SoftError({
                "customer_name": customer_name,
                "service_name": service_name,
                "total_spending": 0,
                "transaction_count": 0,
                "message": "No spending data found for the specified customer and service.",
            })
        return ToolResult(row)

    async def _list_databases(self, args: Dict, cancelled: Signal) -> Outcome:
        return ToolResult(await self._store.list_databases(cancelled=cancelled))

    async def _list_collections(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id = args["databaseId"]
        _require(databaseId=database_id)
        return ToolResult(await self._store.list_containers(database_id, cancelled=cancelled))

    async def _text_search(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id, container_id = args["databaseId"], args["containerId"]
        prop, phrase, n = args["property"], args["searchPhrase"], args["n"]
        _require(databaseId=database_id, containerId=container_id,
                 property=prop, searchPhrase=phrase)

        if n < 1 or n > MAX_RESULTS:
            return SoftError.error(
                f"Parameter 'n' must be a whole number between 1 and {MAX_RESULTS}."
            )

        docs = await self._store.text_search(
            database_id, container_id, prop, phrase, n, cancelled=cancelled,
        )
        log.info(f"Text search on {prop} matched {len(docs)} documents")
        return ToolResult(docs)

    async def _get_approximate_schema(self, args: Dict, cancelled: Signal) -> Outcome:
        database_id, container_id = args["databaseId"], args["containerId"]
        _require(databaseId=database_id, containerId=container_id)

        docs = await self._store.recent(
            database_id, container_id, SCHEMA_SAMPLE_SIZE, cancelled=cancelled,
        )
        if not docs:
            return SoftError({"message": "No documents found to sample."})

        properties: Dict[str, List[str]] = {}
        for doc in docs:
            for key, value in doc.items():
                seen = properties.setdefault(key, [])
                kind = _json_type(value)
                if kind not in seen:
                    seen.append(kind)

        return ToolResult({
            "databaseId": database_id,
            "containerId": container_id,
            "sampledDocuments": len(docs),
            "properties": {k: sorted(v) for k, v in sorted(properties.items())},
        })

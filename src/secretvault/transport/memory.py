"""
In-process SecretVault node set.

``MemoryTransport`` implements :class:`NodeTransport` against one
``MemoryNode`` per node url, which keeps schemas and records in dicts.
Like real nodes, every node stamps its own ``_created``/``_updated``
timestamps, so the same record carries slightly different metadata on
each node. Nodes can be taken offline to exercise partial failures.

Useful for examples, tests and local development without a live cluster.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from ..core.config import NodeConfig
from ..core.defaults import ID_FIELD
from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _matches(record: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    """Top-level equality filter."""
    return all(record.get(name) == value for name, value in filter.items())


@dataclass
class MemoryNode:
    """One simulated node: schemas, per-schema collections and a request log."""

    url: str
    schemas: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    collections: Dict[Any, List[Dict[str, Any]]] = field(default_factory=dict)
    clock: Callable[[], str] = _utc_now
    failure: Optional[Tuple[int, str]] = None
    requests: List[Tuple[str, str]] = field(default_factory=list)

    def records(self, schema: Any) -> List[Dict[str, Any]]:
        """Stored records of a schema (live list)."""
        return self.collections.setdefault(schema, [])

    # -------------------------------------------------------------------------
    # DISPATCH
    # -------------------------------------------------------------------------

    def handle(self, operation: str, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.requests.append((method, operation))

        if self.failure is not None:
            status, body = self.failure
            raise TransportError(
                f"HTTP error! status: {status}, body: {body}", status=status, body=body, node=self.url
            )

        routes = {
            ("POST", "data/create"): self._create,
            ("POST", "data/read"): self._read,
            ("POST", "data/update"): self._update,
            ("POST", "data/delete"): self._delete,
            ("POST", "data/flush"): self._flush,
            ("GET", "schemas"): self._list_schemas,
            ("POST", "schemas"): self._create_schema,
            ("DELETE", "schemas"): self._delete_schema,
        }
        handler = routes.get((method, operation))
        if handler is None:
            raise TransportError(
                f"HTTP error! status: 404, body: no route {method} {operation}",
                status=404,
                body=f"no route {method} {operation}",
                node=self.url,
            )
        return handler(payload)

    def _bad_request(self, message: str) -> TransportError:
        return TransportError(
            f"HTTP error! status: 400, body: {message}", status=400, body=message, node=self.url
        )

    # -------------------------------------------------------------------------
    # DATA
    # -------------------------------------------------------------------------

    def _create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = payload.get("data")
        if not isinstance(data, list):
            raise self._bad_request("'data' must be a list of records")

        records = self.records(payload.get("schema"))
        existing = {record[ID_FIELD] for record in records}
        created, errors = [], []
        for document in data:
            record_id = document.get(ID_FIELD) if isinstance(document, dict) else None
            if record_id is None:
                errors.append({"error": f"missing {ID_FIELD}", "document": document})
                continue
            if record_id in existing:
                errors.append({"error": "duplicate key", "document": document})
                continue
            now = self.clock()
            records.append({**document, "_created": now, "_updated": now})
            existing.add(record_id)
            created.append(record_id)

        return {"data": {"created": created, "errors": errors}}

    def _read(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        filter = payload.get("filter") or {}
        records = self.records(payload.get("schema"))
        return {"data": [record for record in records if _matches(record, filter)]}

    def _update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        changes = (payload.get("update") or {}).get("$set")
        if not isinstance(changes, dict):
            raise self._bad_request("'update' must contain a '$set' document")

        filter = payload.get("filter") or {}
        matched = 0
        for record in self.records(payload.get("schema")):
            if _matches(record, filter):
                record.update(changes)
                record["_updated"] = self.clock()
                matched += 1
        return {"data": {"matched": matched, "updated": matched}}

    def _delete(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        filter = payload.get("filter") or {}
        records = self.records(payload.get("schema"))
        kept = [record for record in records if not _matches(record, filter)]
        deleted = len(records) - len(kept)
        records[:] = kept
        return {"data": {"deleted": deleted}}

    def _flush(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        records = self.records(payload.get("schema"))
        deleted = len(records)
        records.clear()
        return {"data": {"deleted": deleted}}

    # -------------------------------------------------------------------------
    # SCHEMAS
    # -------------------------------------------------------------------------

    def _list_schemas(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"data": list(self.schemas.values())}

    def _create_schema(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        schema_id = payload.get(ID_FIELD)
        if not schema_id:
            raise self._bad_request(f"schema without {ID_FIELD}")
        if schema_id in self.schemas:
            raise self._bad_request(f"schema {schema_id} already exists")
        self.schemas[schema_id] = {**payload, "_created": self.clock()}
        return {"data": {ID_FIELD: schema_id}}

    def _delete_schema(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        schema_id = payload.get("id")
        if self.schemas.pop(schema_id, None) is None:
            raise TransportError(
                f"HTTP error! status: 404, body: schema {schema_id} not found",
                status=404,
                body=f"schema {schema_id} not found",
                node=self.url,
            )
        self.collections.pop(schema_id, None)
        return {"data": {"deleted": 1}}


class MemoryTransport:
    """
    :class:`NodeTransport` over a set of in-process ``MemoryNode``s.

    Example:
        transport = MemoryTransport(org.nodes)
        transport.fail_node(org.nodes[1].url)   # node 2 now answers 503
    """

    def __init__(self, nodes: Iterable[Union[NodeConfig, str]] = ()):
        self.nodes: Dict[str, MemoryNode] = {}
        for node in nodes:
            self.node(node.url if isinstance(node, NodeConfig) else node)

    def node(self, url: str) -> MemoryNode:
        """Get (or create) the simulated node for ``url``."""
        url = url.rstrip("/")
        if url not in self.nodes:
            self.nodes[url] = MemoryNode(url=url)
        return self.nodes[url]

    def fail_node(self, url: str, status: int = 503, body: str = "Service Unavailable") -> None:
        """Make every request to ``url`` fail with ``status``."""
        self.node(url).failure = (status, body)
        logger.debug(f"Memory node {url} set to fail with {status}")

    def restore_node(self, url: str) -> None:
        self.node(url).failure = None

    async def request(
        self,
        node: NodeConfig,
        operation: str,
        token: str,
        payload: Optional[Dict[str, Any]] = None,
        method: str = "POST",
    ) -> Dict[str, Any]:
        if not token:
            raise TransportError(
                "HTTP error! status: 401, body: missing bearer token",
                status=401,
                body="missing bearer token",
                node=node.url,
            )
        target = self.node(node.url)
        # Copy in and out so callers and nodes never share mutable state
        response = target.handle(operation, method.upper(), copy.deepcopy(payload or {}))
        return copy.deepcopy(response)

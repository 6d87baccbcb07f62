"""
SecretVault node-set session.

Ties credentials, the share codec and a transport together to run logical
operations against an ordered set of nodes:

1. ``init()`` mints a bearer token per node and creates key material
2. ``write()`` shards records and sends shard batch i to node i
3. ``read()`` queries every node and recombines the partial record sets
4. ``update()``, ``delete()`` and ``flush()`` fan out to every node
5. ``list_schemas()``, ``create_schema()`` and ``delete_schema()`` manage
   collections on every node

Per-node calls of one operation run concurrently. A node that fails does
not stop its siblings: the failure is recorded in that node's
``NodeOutcome`` and logged.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .codec.share_codec import Cluster, KeyMode, Operation, ShareCodec
from .core.config import NodeConfig, OrgConfig, OrgCredentials
from .core.defaults import DEFAULT_OPERATION, ID_FIELD, TOKEN_EXPIRY_SECONDS
from .core.exceptions import (
    ConfigurationError,
    CredentialError,
    NodeSetUnavailableError,
    PartialNodeFailure,
    TransportError,
)
from .records.distributor import RecordDistributor
from .records.reconciler import RecordReconciler
from .transport.adapter import NodeTransport
from .transport.auth import CredentialSigner, JwtSigner
from .transport.http import HttpTransport

logger = logging.getLogger(__name__)


# =============================================================================
# NODE OUTCOMES
# =============================================================================


@dataclass
class NodeOutcome:
    """Result of one node's part in a logical operation."""

    node: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"node": self.node, "result": self.result}
        return {"node": self.node, "error": self.error, "status": self.status}


class NodeOutcomes(list):
    """One ``NodeOutcome`` per node, in cluster order."""

    @property
    def succeeded(self) -> List[NodeOutcome]:
        return [o for o in self if o.ok]

    @property
    def failed(self) -> List[NodeOutcome]:
        return [o for o in self if not o.ok]

    @property
    def all_ok(self) -> bool:
        return all(o.ok for o in self)

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed) and bool(self.succeeded)

    def raise_for_failures(self) -> "NodeOutcomes":
        """
        Raise if any node failed, otherwise return self.

        Raises:
            PartialNodeFailure: If some nodes failed
            NodeSetUnavailableError: If every node failed
        """
        if not self.failed:
            return self
        if not self.succeeded:
            raise NodeSetUnavailableError(list(self))
        raise PartialNodeFailure(list(self))


def _response_data(result: Any) -> Any:
    """The ``data`` member of a node response; ``None`` if the response is not an object."""
    return result.get("data") if isinstance(result, dict) else None


# =============================================================================
# SESSION
# =============================================================================


class NodeSetSession:
    """
    Client session over an ordered set of SecretVault nodes.

    Example:
        session = NodeSetSession(nodes, credentials, schema_id=schema_id)
        await session.init()
        await session.write([{"name": {"$allot": "Alice"}, "rating": 5}])
        records = await session.read({"rating": 5})

    Args:
        nodes: Ordered nodes (``NodeConfig`` or ``{"url", "did"}`` dicts).
            Share i of every secret value goes to node i.
        credentials: Organization credentials used to sign node tokens.
        schema_id: Collection the data operations work on.
        operation: nilql capability of the key created by ``init()``.
        key_mode: ``CLUSTER`` or ``SECRET`` key material.
        secret_key: Existing key to adopt (``SECRET`` mode only).
        token_expiry_seconds: Lifetime of minted node tokens.
        transport: Node transport (defaults to ``HttpTransport``).
        signer: Token signer (defaults to a ``JwtSigner`` over ``credentials``).
        codec: Share codec (defaults to a nilql-backed ``ShareCodec``).
    """

    def __init__(
        self,
        nodes: Sequence[Union[NodeConfig, Mapping[str, Any]]],
        credentials: Optional[OrgCredentials] = None,
        schema_id: Optional[str] = None,
        operation: Union[Operation, str] = DEFAULT_OPERATION,
        key_mode: Union[KeyMode, str] = KeyMode.CLUSTER,
        secret_key: Any = None,
        token_expiry_seconds: int = TOKEN_EXPIRY_SECONDS,
        transport: Optional[NodeTransport] = None,
        signer: Optional[CredentialSigner] = None,
        codec: Optional[ShareCodec] = None,
    ):
        self.nodes: List[NodeConfig] = [
            node if isinstance(node, NodeConfig) else NodeConfig.from_dict(node) for node in nodes
        ]
        self.cluster = Cluster.from_nodes(self.nodes)

        self.credentials = credentials
        self.schema_id = schema_id
        self.operation = Operation(operation)
        self.key_mode = KeyMode(key_mode)
        self.secret_key = secret_key
        self.token_expiry_seconds = token_expiry_seconds

        self.transport = transport if transport is not None else HttpTransport()
        if signer is None and credentials is not None:
            signer = JwtSigner.from_credentials(credentials, token_expiry_seconds)
        self.signer = signer

        self.codec = codec if codec is not None else ShareCodec()
        self.distributor = RecordDistributor(self.codec)
        self.reconciler = RecordReconciler(self.codec)

        self.node_tokens: List[Dict[str, str]] = []

    @classmethod
    def from_config(cls, config: OrgConfig, **kwargs: Any) -> "NodeSetSession":
        """Create a session from an ``OrgConfig`` (e.g. ``OrgConfig.from_env()``)."""
        return cls(config.nodes, credentials=config.credentials, **kwargs)

    # -------------------------------------------------------------------------
    # LIFECYCLE AND TOKENS
    # -------------------------------------------------------------------------

    async def init(self) -> ShareCodec:
        """
        Mint a token for every node and create the session's key material.

        Returns:
            The initialized codec

        Raises:
            CredentialError: If no signer is configured or signing fails
            ConfigurationError: On an invalid key mode/cluster combination
        """
        self.node_tokens = await self.generate_tokens_for_all_nodes()
        self.codec.initialize(
            self.cluster,
            mode=self.key_mode,
            operation=self.operation,
            secret_key=self.secret_key,
        )
        logger.info(
            f"Session ready: {self.cluster.size} nodes, {self.key_mode} key, schema {self.schema_id}"
        )
        return self.codec

    def set_schema_id(self, schema_id: str, operation: Union[Operation, str, None] = None) -> None:
        """Switch the collection used by data operations.

        A new ``operation`` only applies to key material created by the next ``init()``.
        """
        self.schema_id = schema_id
        if operation is not None:
            self.operation = Operation(operation)

    def _sign(self, node: NodeConfig) -> str:
        if self.signer is None:
            raise CredentialError("No organization credentials configured; cannot sign node tokens")
        return self.signer.sign(node.did)

    async def generate_node_token(self, node: Union[NodeConfig, str]) -> str:
        """Mint a token for one node (a ``NodeConfig`` or a node DID)."""
        if isinstance(node, str):
            node = NodeConfig(url="", did=node)
        return self._sign(node)

    async def generate_tokens_for_all_nodes(self) -> List[Dict[str, str]]:
        """Mint a token for every node: ``[{"node": url, "token": jwt}, ...]``."""
        tokens = await asyncio.gather(*(self.generate_node_token(node) for node in self.nodes))
        return [{"node": node.url, "token": token} for node, token in zip(self.nodes, tokens)]

    # -------------------------------------------------------------------------
    # FAN-OUT
    # -------------------------------------------------------------------------

    def _require_schema(self) -> str:
        if not self.schema_id:
            raise ConfigurationError("No schema id set; pass schema_id or call set_schema_id()")
        return self.schema_id

    async def _call(
        self,
        node: NodeConfig,
        operation: str,
        token: str,
        payload: Optional[Dict[str, Any]],
        method: str,
    ) -> NodeOutcome:
        try:
            result = await self.transport.request(node, operation, token, payload, method=method)
        except TransportError as e:
            logger.warning(f"{method} {operation} failed on {node.url}: {e}")
            return NodeOutcome(node=node.url, error=str(e), status=e.status)

        logger.debug(f"{method} {operation} succeeded on {node.url}")
        return NodeOutcome(node=node.url, result=result)

    async def _fan_out(
        self,
        operation: str,
        payloads: Sequence[Optional[Dict[str, Any]]],
        method: str = "POST",
    ) -> NodeOutcomes:
        """Send ``payloads[i]`` to node i concurrently; one outcome per node."""
        tokens = [self._sign(node) for node in self.nodes]
        outcomes = await asyncio.gather(
            *(
                self._call(node, operation, token, payload, method)
                for node, token, payload in zip(self.nodes, tokens, payloads)
            )
        )
        return NodeOutcomes(outcomes)

    async def _broadcast(
        self,
        operation: str,
        payload: Optional[Dict[str, Any]],
        method: str = "POST",
    ) -> NodeOutcomes:
        return await self._fan_out(operation, [payload] * len(self.nodes), method)

    def _summarize(self, action: str, outcomes: NodeOutcomes) -> None:
        logger.info(f"{action}: {len(outcomes.succeeded)}/{len(outcomes)} nodes succeeded")

    # -------------------------------------------------------------------------
    # DATA
    # -------------------------------------------------------------------------

    async def write(
        self, records: Union[Dict[str, Any], Sequence[Dict[str, Any]]]
    ) -> NodeOutcomes:
        """
        Shard ``records`` and store shard batch i on node i.

        Records without an identifier get a fresh one, shared by all shards.

        Raises:
            NotInitializedError: If ``init()`` has not run
            InvalidRecordError: If a record cannot be sharded
        """
        schema_id = self._require_schema()
        if isinstance(records, dict):
            records = [records]

        batches = self.distributor.distribute(records, self.codec.key)
        outcomes = await self._fan_out(
            "data/create",
            [{"schema": schema_id, "data": batch} for batch in batches],
        )
        self._summarize(f"Wrote {len(records)} records", outcomes)
        return outcomes

    async def read(self, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Read matching records from every node and recombine them.

        Raises:
            NotInitializedError: If ``init()`` has not run
            NodeSetUnavailableError: If every node failed
            InsufficientSharesError: If a secret record is missing a node's shard
            InconsistentShardsError: If the shards of a record disagree
        """
        schema_id = self._require_schema()
        key = self.codec.key

        outcomes = await self._broadcast("data/read", {"schema": schema_id, "filter": filter or {}})
        if not outcomes.succeeded:
            raise NodeSetUnavailableError(list(outcomes))

        partials: List[Optional[List[Dict[str, Any]]]] = []
        for outcome in outcomes:
            data = _response_data(outcome.result) if outcome.ok else None
            if outcome.ok and not isinstance(data, list):
                logger.warning(f"Node {outcome.node} returned no record list; ignoring its response")
                data = None
            partials.append(data)

        records = self.reconciler.reconcile(partials, key)
        self._summarize(f"Read {len(records)} records", outcomes)
        return records

    async def update(
        self,
        patch: Dict[str, Any],
        filter: Optional[Dict[str, Any]] = None,
    ) -> NodeOutcomes:
        """
        Apply ``patch`` (``$set`` semantics) to matching records on every node.

        Secret fields in ``patch`` are re-shared, node i receiving share i.
        """
        schema_id = self._require_schema()
        shards = self.distributor.distribute_patch(patch, self.codec.key)
        outcomes = await self._fan_out(
            "data/update",
            [
                {"schema": schema_id, "update": {"$set": shard}, "filter": filter or {}}
                for shard in shards
            ],
        )
        self._summarize("Update", outcomes)
        return outcomes

    async def delete(self, filter: Optional[Dict[str, Any]] = None) -> NodeOutcomes:
        """Delete matching records on every node."""
        schema_id = self._require_schema()
        outcomes = await self._broadcast("data/delete", {"schema": schema_id, "filter": filter or {}})
        self._summarize("Delete", outcomes)
        return outcomes

    async def flush(self) -> NodeOutcomes:
        """Remove every record of the schema on every node."""
        schema_id = self._require_schema()
        outcomes = await self._broadcast("data/flush", {"schema": schema_id})
        self._summarize("Flush", outcomes)
        return outcomes

    # -------------------------------------------------------------------------
    # SCHEMAS
    # -------------------------------------------------------------------------

    async def list_schemas(self) -> List[Any]:
        """
        List schemas on every node.

        Returns:
            The ``data`` of each node that answered, in cluster order

        Raises:
            NodeSetUnavailableError: If every node failed
        """
        outcomes = await self._broadcast("schemas", None, method="GET")
        if not outcomes.succeeded:
            raise NodeSetUnavailableError(list(outcomes))
        return [_response_data(o.result) for o in outcomes.succeeded]

    async def create_schema(
        self,
        schema: Dict[str, Any],
        name: str,
        schema_id: Optional[str] = None,
    ) -> NodeOutcomes:
        """Create the same JSON schema on every node under one identifier."""
        schema_id = schema_id or str(uuid.uuid4())
        payload = {ID_FIELD: schema_id, "name": name, "keys": [ID_FIELD], "schema": schema}
        outcomes = await self._broadcast("schemas", payload)
        self._summarize(f"Create schema {name} ({schema_id})", outcomes)
        return outcomes

    async def delete_schema(self, schema_id: str) -> NodeOutcomes:
        outcomes = await self._broadcast("schemas", {"id": schema_id}, method="DELETE")
        self._summarize(f"Delete schema {schema_id}", outcomes)
        return outcomes

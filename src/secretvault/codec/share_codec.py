"""
ShareCodec - secret-sharing of marked record fields.

The codec is the only component that talks to the secret-sharing
primitive. It provides:

- Key material generation for a cluster (distributed ClusterKey or
  single-object SecretKey)
- Scalar encrypt/decrypt (one share per node, in node order)
- Structural allot: every ``{"$allot": v}`` leaf of a nested record is
  replaced by node ``i``'s share in shard ``i``
- Structural unify: N shards are walked in lock-step and marked leaves
  are recombined; any structural disagreement is an error

Lifecycle:
- A codec starts UNINITIALIZED; ``initialize()`` moves it to INITIALIZED
  and there is no way back. Every other operation needs key material,
  either the codec's own or one passed explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..core.config import NodeConfig
from ..core.defaults import ALLOT_MARKER, DEFAULT_OPERATION, VOLATILE_FIELDS
from ..core.exceptions import (
    ConfigurationError,
    InconsistentShardsError,
    InvalidRecordError,
    MalformedSharesError,
    NotInitializedError,
)
from .primitive import NilQLPrimitive, SharingPrimitive
from .values import (
    MappingNode,
    Marked,
    Node,
    SequenceNode,
    child_path,
    classify,
    is_markable,
    iter_marked,
    to_plain,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class KeyMode(StrEnum):
    """How key material is held."""

    CLUSTER = "cluster"  # distributed; no single holder of the full secret
    SECRET = "secret"    # one key object, generated or caller-supplied


class Operation(StrEnum):
    """nilql capability a key is generated for."""

    STORE = "store"
    MATCH = "match"
    SUM = "sum"


class CodecState(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass(frozen=True)
class Cluster:
    """Ordered node set. Share ``i`` always belongs to ``nodes[i]``."""

    nodes: Tuple[NodeConfig, ...]

    def __post_init__(self) -> None:
        if not self.nodes:
            raise ConfigurationError("A cluster needs at least one node")

    @property
    def size(self) -> int:
        return len(self.nodes)

    def to_nilql(self) -> Dict[str, Any]:
        """Cluster description in the shape nilql expects."""
        return {"nodes": [node.to_dict() for node in self.nodes]}

    @classmethod
    def from_nodes(cls, nodes: Iterable[NodeConfig]) -> "Cluster":
        return cls(tuple(nodes))

    @classmethod
    def of_size(cls, size: int) -> "Cluster":
        """Anonymous cluster for using the codec without real nodes."""
        return cls(tuple(NodeConfig(url=f"local://node-{i}") for i in range(size)))


@dataclass(frozen=True)
class KeyMaterial:
    """Opaque primitive key bound to a cluster, key mode and operation."""

    key: Any = field(repr=False)
    cluster: Cluster
    mode: KeyMode
    operation: Operation

    @property
    def node_count(self) -> int:
        return self.cluster.size


# =============================================================================
# SHARE CODEC
# =============================================================================


class ShareCodec:
    """
    Secret-sharing codec over nested records.

    Example:
        codec = ShareCodec()
        codec.initialize(Cluster.of_size(3))
        shards = codec.allot({"years_in_web3": {"$allot": 10}, "rating": 5})
        record = codec.unify(shards)   # {"years_in_web3": 10, "rating": 5}

    Args:
        primitive: Secret-sharing backend (defaults to nilql).
        marker: Key of the single-key mapping that marks a secret leaf.
        volatile_fields: Top-level fields that legitimately differ between
            nodes (per-node timestamps). They are ignored when comparing
            shards and the first shard's values are kept.
    """

    def __init__(
        self,
        primitive: Optional[SharingPrimitive] = None,
        marker: str = ALLOT_MARKER,
        volatile_fields: Iterable[str] = VOLATILE_FIELDS,
    ):
        self.primitive = primitive if primitive is not None else NilQLPrimitive()
        self.marker = marker
        self.volatile_fields = tuple(volatile_fields)
        self._key: Optional[KeyMaterial] = None

    # -------------------------------------------------------------------------
    # LIFECYCLE
    # -------------------------------------------------------------------------

    @property
    def state(self) -> CodecState:
        return CodecState.INITIALIZED if self._key is not None else CodecState.UNINITIALIZED

    @property
    def key(self) -> KeyMaterial:
        """The codec's key material.

        Raises:
            NotInitializedError: If ``initialize()`` has not succeeded yet.
        """
        if self._key is None:
            raise NotInitializedError()
        return self._key

    def initialize(
        self,
        cluster: Cluster,
        mode: KeyMode = KeyMode.CLUSTER,
        operation: Union[Operation, str] = DEFAULT_OPERATION,
        secret_key: Any = None,
    ) -> KeyMaterial:
        """
        Generate (or adopt) key material for ``cluster``.

        Args:
            cluster: Ordered node set the shares are produced for.
            mode: ``CLUSTER`` generates a distributed key; ``SECRET`` uses
                ``secret_key`` when given and generates one otherwise.
            operation: nilql capability of the key.
            secret_key: Caller-supplied key, only valid with ``SECRET``.

        Returns:
            The new key material, also kept as the codec's default key.

        Raises:
            ConfigurationError: On an invalid mode/key/cluster combination.
        """
        mode = KeyMode(mode)
        operation = Operation(operation)
        operations = {operation.value: True}

        if mode is KeyMode.CLUSTER:
            if secret_key is not None:
                raise ConfigurationError("A caller-supplied key requires KeyMode.SECRET")
            if cluster.size < 2:
                raise ConfigurationError("KeyMode.CLUSTER needs a cluster of at least two nodes")
            key = self.primitive.generate_cluster_key(cluster.to_nilql(), operations)
        elif secret_key is not None:
            key = secret_key
        else:
            key = self.primitive.generate_secret_key(cluster.to_nilql(), operations)

        if self._key is not None:
            logger.debug("Replacing existing key material")

        self._key = KeyMaterial(key=key, cluster=cluster, mode=mode, operation=operation)
        logger.info(f"Initialized {mode} key for {cluster.size}-node cluster ({operation})")
        return self._key

    def _resolve(self, key: Optional[KeyMaterial]) -> KeyMaterial:
        return key if key is not None else self.key

    # -------------------------------------------------------------------------
    # SCALARS
    # -------------------------------------------------------------------------

    def encrypt_scalar(self, value: Any, key: Optional[KeyMaterial] = None) -> List[Any]:
        """
        Split one scalar into N shares, one per node in cluster order.

        Shares are non-deterministic: encrypting the same value twice gives
        different shares that decrypt to the same value.

        Raises:
            NotInitializedError: If there is no key material.
            InvalidRecordError: If ``value`` is not an int, str or bytes.
            MalformedSharesError: If the primitive returns the wrong share count.
        """
        material = self._resolve(key)
        if not is_markable(value):
            raise InvalidRecordError(
                f"Only int, str and bytes values can be secret-shared, got {type(value).__name__}"
            )

        try:
            shares = self.primitive.encrypt(material.key, value)
        except (ValueError, TypeError) as e:
            raise InvalidRecordError(f"Value could not be secret-shared: {e}") from e

        if len(shares) != material.node_count:
            raise MalformedSharesError(
                f"Primitive produced {len(shares)} shares for a {material.node_count}-node cluster",
                expected=material.node_count,
                received=len(shares),
            )
        return shares

    def decrypt_scalar(self, shares: Sequence[Any], key: Optional[KeyMaterial] = None) -> Any:
        """
        Recombine exactly N shares (node order) into the original value.

        Raises:
            NotInitializedError: If there is no key material.
            MalformedSharesError: On a share count other than N, or shares
                the primitive cannot recombine.
        """
        material = self._resolve(key)
        shares = list(shares)
        if len(shares) != material.node_count:
            raise MalformedSharesError(
                f"Expected {material.node_count} shares (one per node), got {len(shares)}",
                expected=material.node_count,
                received=len(shares),
            )

        try:
            return self.primitive.decrypt(material.key, shares)
        except (ValueError, TypeError, KeyError) as e:
            raise MalformedSharesError(
                f"Shares could not be recombined: {e}",
                expected=material.node_count,
                received=len(shares),
            ) from e

    # -------------------------------------------------------------------------
    # RECORDS
    # -------------------------------------------------------------------------

    def has_secrets(self, record: Any) -> bool:
        """Whether ``record`` contains at least one marked leaf."""
        return next(iter_marked(classify(record, self.marker)), None) is not None

    def allot(self, record: Dict[str, Any], key: Optional[KeyMaterial] = None) -> List[Dict[str, Any]]:
        """
        Produce one shard per node from a record with ``$allot`` leaves.

        Unmarked structure is duplicated unchanged into every shard; shard
        ``i`` carries ``{"$allot": share_i}`` at each marked position.

        Raises:
            NotInitializedError: If there is no key material.
            InvalidRecordError: If a marked value is not a scalar.
        """
        material = self._resolve(key)
        tree = classify(record, self.marker)
        return [to_plain(shard, self.marker) for shard in self._allot_node(tree, material, "")]

    def _allot_node(self, node: Node, material: KeyMaterial, path: str) -> List[Node]:
        n = material.node_count

        if isinstance(node, Marked):
            if not is_markable(node.value):
                raise InvalidRecordError(
                    f"Only scalar values can be marked with {self.marker!r}; "
                    f"{path or '<root>'} holds {type(node.value).__name__}"
                )
            return [Marked(share) for share in self.encrypt_scalar(node.value, material)]

        if isinstance(node, MappingNode):
            per_field = {
                name: self._allot_node(child, material, child_path(path, name))
                for name, child in node.fields.items()
            }
            return [
                MappingNode({name: shards[i] for name, shards in per_field.items()})
                for i in range(n)
            ]

        if isinstance(node, SequenceNode):
            per_item = [
                self._allot_node(child, material, child_path(path, idx))
                for idx, child in enumerate(node.items)
            ]
            return [SequenceNode(tuple(shards[i] for shards in per_item)) for i in range(n)]

        return [node] * n

    def unify(self, shards: Sequence[Dict[str, Any]], key: Optional[KeyMaterial] = None) -> Dict[str, Any]:
        """
        Recombine per-node shards (node order) into the logical record.

        Volatile fields are stripped from every shard before comparison;
        the first shard's values are put back on the result if present.

        Raises:
            NotInitializedError: If there is no key material.
            InconsistentShardsError: If shards differ in structure or in
                any plain value.
            MalformedSharesError: If a marked leaf cannot be recombined.
        """
        material = self._resolve(key)
        if not shards:
            raise MalformedSharesError(
                "No shards to unify", expected=material.node_count, received=0
            )

        preserved: Dict[str, Any] = {}
        trees: List[Node] = []
        for i, shard in enumerate(shards):
            if isinstance(shard, dict):
                if i == 0:
                    preserved = {
                        name: shard[name]
                        for name in self.volatile_fields
                        if shard.get(name) is not None
                    }
                shard = {k: v for k, v in shard.items() if k not in self.volatile_fields}
            trees.append(classify(shard, self.marker))

        unified = self._unify_nodes(trees, material, "")
        if isinstance(unified, dict):
            unified.update(preserved)
        return unified

    def _unify_nodes(self, nodes: List[Node], material: KeyMaterial, path: str) -> Any:
        first = nodes[0]
        kinds = {type(node).__name__ for node in nodes}
        if len(kinds) != 1:
            raise InconsistentShardsError(
                f"Shards disagree on value kind ({', '.join(sorted(kinds))})", path
            )

        if isinstance(first, Marked):
            return self.decrypt_scalar([node.value for node in nodes], material)

        if isinstance(first, MappingNode):
            names = set(first.fields)
            for i, node in enumerate(nodes[1:], start=1):
                if set(node.fields) != names:
                    raise InconsistentShardsError(
                        f"Shard {i} has fields {sorted(node.fields)}, shard 0 has {sorted(names)}",
                        path,
                    )
            return {
                name: self._unify_nodes(
                    [node.fields[name] for node in nodes], material, child_path(path, name)
                )
                for name in first.fields
            }

        if isinstance(first, SequenceNode):
            lengths = {len(node.items) for node in nodes}
            if len(lengths) != 1:
                raise InconsistentShardsError(
                    f"Shards disagree on sequence length ({sorted(lengths)})", path
                )
            return [
                self._unify_nodes([node.items[idx] for node in nodes], material, child_path(path, idx))
                for idx in range(len(first.items))
            ]

        if any(node.value != first.value for node in nodes[1:]):
            raise InconsistentShardsError("Plain values differ between shards", path)
        return first.value


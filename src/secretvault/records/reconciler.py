"""
Record reconciliation - per-node partial results back to logical records.

Each node returns its own shard of every record it holds. Shards are
grouped across nodes by identifier and each group is unified. A record
whose secret fields cannot be recombined (because a node did not return
its shard) is reported as an error, never dropped or half-decrypted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..codec.share_codec import KeyMaterial, ShareCodec
from ..core.defaults import ID_FIELD
from ..core.exceptions import (
    InconsistentShardsError,
    InsufficientSharesError,
    MalformedSharesError,
)

logger = logging.getLogger(__name__)

PartialRecordSet = Sequence[Dict[str, Any]]


@dataclass
class ShardGroup:
    """All shards of one logical record, in node order."""

    record_id: Any
    shards: List[Dict[str, Any]] = field(default_factory=list)
    nodes: List[int] = field(default_factory=list)  # contributing node indexes

    def is_complete(self, node_count: int) -> bool:
        return len(self.shards) == node_count


class RecordReconciler:
    """
    Regroups per-node shards by identifier and unifies them.

    Output order is the order in which identifiers are first seen, scanning
    node 0's results first, then node 1's, and so on.
    """

    def __init__(self, codec: ShareCodec, id_field: str = ID_FIELD):
        self.codec = codec
        self.id_field = id_field

    def group(self, partials: Sequence[Optional[PartialRecordSet]]) -> List[ShardGroup]:
        """
        Group shard documents across nodes by identifier.

        Args:
            partials: One entry per node in cluster order; ``None`` for a
                node that returned nothing.

        Raises:
            InconsistentShardsError: If a shard has no usable identifier or a
                node returns the same identifier twice.
        """
        groups: Dict[Any, ShardGroup] = {}

        for node_index, partial in enumerate(partials):
            if partial is None:
                continue

            seen = set()
            for shard in partial:
                record_id = shard.get(self.id_field) if isinstance(shard, dict) else None
                if record_id is None or isinstance(record_id, (dict, list)):
                    raise InconsistentShardsError(
                        f"Node {node_index} returned a record without a usable {self.id_field!r}"
                    )
                if record_id in seen:
                    raise InconsistentShardsError(
                        f"Node {node_index} returned record {record_id!r} more than once"
                    )
                seen.add(record_id)

                group = groups.setdefault(record_id, ShardGroup(record_id=record_id))
                group.shards.append(shard)
                group.nodes.append(node_index)

        return list(groups.values())

    def reconcile(
        self,
        partials: Sequence[Optional[PartialRecordSet]],
        key: Optional[KeyMaterial] = None,
    ) -> List[Dict[str, Any]]:
        """
        Rebuild logical records from N partial record sets.

        Raises:
            MalformedSharesError: If ``partials`` does not have one entry per node.
            InsufficientSharesError: If a record with secret fields is missing
                the shard of at least one node.
            InconsistentShardsError: If the shards of a record disagree.
        """
        material = key if key is not None else self.codec.key
        node_count = material.node_count
        if len(partials) != node_count:
            raise MalformedSharesError(
                f"Expected {node_count} partial record sets (one per node), got {len(partials)}",
                expected=node_count,
                received=len(partials),
            )

        records = []
        incomplete = 0
        for group in self.group(partials):
            if not group.is_complete(node_count):
                if any(self.codec.has_secrets(shard) for shard in group.shards):
                    raise InsufficientSharesError(group.record_id, len(group.shards), node_count)
                incomplete += 1
            records.append(self.codec.unify(group.shards, material))

        if incomplete:
            logger.warning(
                f"{incomplete} records without secret fields were rebuilt from fewer than "
                f"{node_count} nodes"
            )
        logger.debug(f"Reconciled {len(records)} records from {node_count} nodes")
        return records

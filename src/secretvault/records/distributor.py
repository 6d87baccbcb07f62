"""
Record distribution - one shard batch per node.

Turns logical records into per-node shard batches ready for transport.
Every record gets an identifier before sharding so that the N shards of
one record can be regrouped on read.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..codec.share_codec import KeyMaterial, ShareCodec
from ..core.defaults import ID_FIELD
from ..core.exceptions import InvalidRecordError

logger = logging.getLogger(__name__)


# =============================================================================
# SHARDED RECORDS
# =============================================================================


def _check_index(index: int, node_count: int) -> None:
    if not 0 <= index < node_count:
        raise IndexError(f"Node index {index} outside a {node_count}-node cluster")


@dataclass(frozen=True)
class SecretShards:
    """Record with at least one secret field: a distinct shard per node."""

    record_id: Any
    shards: Tuple[Dict[str, Any], ...]

    @property
    def node_count(self) -> int:
        return len(self.shards)

    def for_node(self, index: int) -> Dict[str, Any]:
        _check_index(index, self.node_count)
        return self.shards[index]


@dataclass(frozen=True)
class PlainShards:
    """Record without secret fields: the same document for every node."""

    record_id: Any
    document: Dict[str, Any]
    node_count: int

    def for_node(self, index: int) -> Dict[str, Any]:
        _check_index(index, self.node_count)
        return copy.deepcopy(self.document)


ShardedRecord = Union[SecretShards, PlainShards]


# =============================================================================
# DISTRIBUTOR
# =============================================================================


def _new_id() -> str:
    return str(uuid.uuid4())


class RecordDistributor:
    """
    Splits logical records into N per-node shard batches.

    Example:
        distributor = RecordDistributor(codec)
        batches = distributor.distribute([r1, r2])
        # batches[i] == [r1 shard i, r2 shard i]
    """

    def __init__(
        self,
        codec: ShareCodec,
        id_field: str = ID_FIELD,
        id_factory: Optional[Callable[[], Any]] = None,
    ):
        self.codec = codec
        self.id_field = id_field
        self.id_factory = id_factory or _new_id

    def _material(self, key: Optional[KeyMaterial]) -> KeyMaterial:
        return key if key is not None else self.codec.key

    def assign_identifiers(self, records: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Return shallow copies of ``records``, each with an identifier.

        Records that already have a non-empty identifier keep it.

        Raises:
            InvalidRecordError: If a record is not a mapping or marks its
                identifier as secret.
        """
        identified = []
        for position, record in enumerate(records):
            if not isinstance(record, dict):
                raise InvalidRecordError(
                    f"Record {position} is a {type(record).__name__}, expected a mapping"
                )
            record_id = record.get(self.id_field)
            if isinstance(record_id, (dict, list)):
                raise InvalidRecordError(
                    f"Record {position}: identifier field {self.id_field!r} must be a plain value"
                )
            if record_id is None or record_id == "":
                record = {**record, self.id_field: self.id_factory()}
            else:
                record = dict(record)
            identified.append(record)
        return identified

    def shard_record(self, record: Dict[str, Any], key: Optional[KeyMaterial] = None) -> ShardedRecord:
        """Allot one record; the variant says whether any field was secret."""
        material = self._material(key)
        shards = self.codec.allot(record, material)
        record_id = record.get(self.id_field)
        if self.codec.has_secrets(record):
            return SecretShards(record_id=record_id, shards=tuple(shards))
        return PlainShards(record_id=record_id, document=shards[0], node_count=len(shards))

    def distribute(
        self,
        records: Sequence[Dict[str, Any]],
        key: Optional[KeyMaterial] = None,
    ) -> List[List[Dict[str, Any]]]:
        """
        Shard a batch of records and regroup the shards by node.

        Returns:
            Exactly N lists; list ``i`` holds every record's shard ``i`` in
            input order.
        """
        material = self._material(key)
        sharded = [self.shard_record(record, material) for record in self.assign_identifiers(records)]

        batches = [
            [record.for_node(i) for record in sharded]
            for i in range(material.node_count)
        ]

        secret_count = sum(1 for record in sharded if isinstance(record, SecretShards))
        logger.debug(
            f"Distributed {len(sharded)} records ({secret_count} with secret fields) "
            f"across {material.node_count} nodes"
        )
        return batches

    def distribute_patch(
        self,
        patch: Dict[str, Any],
        key: Optional[KeyMaterial] = None,
    ) -> List[Dict[str, Any]]:
        """Shard a partial-update document (no identifier is added)."""
        material = self._material(key)
        if not isinstance(patch, dict):
            raise InvalidRecordError(f"Update is a {type(patch).__name__}, expected a mapping")
        sharded = self.shard_record(patch, material)
        return [sharded.for_node(i) for i in range(material.node_count)]

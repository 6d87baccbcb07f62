"""Record distribution (write path) and reconciliation (read path)."""

from .distributor import (
    PlainShards,
    RecordDistributor,
    SecretShards,
    ShardedRecord,
)
from .reconciler import PartialRecordSet, RecordReconciler, ShardGroup

__all__ = [
    "RecordDistributor",
    "ShardedRecord",
    "SecretShards",
    "PlainShards",
    "RecordReconciler",
    "ShardGroup",
    "PartialRecordSet",
]

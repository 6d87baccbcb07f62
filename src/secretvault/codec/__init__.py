"""SecretVault codec - secret-sharing of ``$allot``-marked record fields.

Example usage:
    from secretvault.codec import Cluster, KeyMode, ShareCodec

    codec = ShareCodec()
    codec.initialize(Cluster.of_size(3), mode=KeyMode.CLUSTER)

    shards = codec.allot({"name": {"$allot": "Steph"}, "rating": 8})
    assert codec.unify(shards) == {"name": "Steph", "rating": 8}
"""

from .primitive import NilQLPrimitive, SharingPrimitive
from .share_codec import (
    Cluster,
    CodecState,
    KeyMaterial,
    KeyMode,
    Operation,
    ShareCodec,
)
from .values import (
    MappingNode,
    Marked,
    Node,
    Scalar,
    SequenceNode,
    classify,
    to_plain,
)

__all__ = [
    # Codec
    "ShareCodec",
    "Cluster",
    "CodecState",
    "KeyMaterial",
    "KeyMode",
    "Operation",
    # Primitive
    "SharingPrimitive",
    "NilQLPrimitive",
    # Value tree
    "Node",
    "Scalar",
    "Marked",
    "MappingNode",
    "SequenceNode",
    "classify",
    "to_plain",
]

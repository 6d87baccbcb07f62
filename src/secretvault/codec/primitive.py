"""Secret-sharing primitive interface and its nilql backend.

The cryptography itself (key generation, XOR/additive/Shamir splitting,
symmetric encryption of shares) lives in the ``nilql`` library. The codec
only sees the four operations of :class:`SharingPrimitive`, and always in
terms of one share per node.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence, runtime_checkable

import nilql


@runtime_checkable
class SharingPrimitive(Protocol):
    """Opaque secret-sharing capability used by :class:`ShareCodec`."""

    def generate_cluster_key(self, cluster: Dict[str, Any], operations: Dict[str, bool]) -> Any:
        """Generate a distributed key (no single holder of the full secret)."""
        ...

    def generate_secret_key(self, cluster: Dict[str, Any], operations: Dict[str, bool]) -> Any:
        """Generate a conventional single-object key."""
        ...

    def encrypt(self, key: Any, value: Any) -> List[Any]:
        """Split ``value`` into one share per node of the key's cluster."""
        ...

    def decrypt(self, key: Any, shares: Sequence[Any]) -> Any:
        """Recombine one share per node (in node order) into the value."""
        ...


class NilQLPrimitive:
    """:class:`SharingPrimitive` backed by the ``nilql`` library.

    nilql returns a single ciphertext (not a list) for a one-node cluster
    and expects the same shape back; this class hides that difference so
    callers always deal with a list of N shares.
    """

    def generate_cluster_key(self, cluster: Dict[str, Any], operations: Dict[str, bool]) -> Any:
        return nilql.ClusterKey.generate(cluster, operations)

    def generate_secret_key(self, cluster: Dict[str, Any], operations: Dict[str, bool]) -> Any:
        return nilql.SecretKey.generate(cluster, operations)

    def encrypt(self, key: Any, value: Any) -> List[Any]:
        ciphertext = nilql.encrypt(key, value)
        if isinstance(ciphertext, (list, tuple)):
            return list(ciphertext)
        return [ciphertext]

    def decrypt(self, key: Any, shares: Sequence[Any]) -> Any:
        if len(shares) == 1:
            return nilql.decrypt(key, shares[0])
        return nilql.decrypt(key, list(shares))

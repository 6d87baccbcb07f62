"""Shared fixtures for SecretVault tests.

Provides:
- An additive secret-sharing primitive (fast, deterministic-size shares)
- Initialized codecs for 1, 2 and 3 node clusters
- Organization credentials with a fresh secp256k1 key
- A 3-node in-memory node set and a session bound to it
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from secretvault.codec import Cluster, KeyMode, ShareCodec
from secretvault.core import NodeConfig, OrgCredentials
from secretvault.session import NodeSetSession
from secretvault.transport import MemoryTransport

MODULUS = 2**32


# ============================================================================
# Test primitive
# ============================================================================


@dataclass(frozen=True)
class AdditiveKey:
    size: int
    kind: str
    operations: tuple


class AdditivePrimitive:
    """Additive sharing for ints, XOR sharing for str/bytes.

    Integer shares are ints summing to the value mod 2**32. String and
    bytes shares are ``"s:<hex>"``/``"b:<hex>"`` strings whose XOR is the
    encoded value.
    """

    def __init__(self):
        self.encrypt_calls = 0
        self.decrypt_calls = 0

    def _key(self, cluster: Dict[str, Any], operations: Dict[str, bool], kind: str) -> AdditiveKey:
        return AdditiveKey(size=len(cluster["nodes"]), kind=kind, operations=tuple(operations))

    def generate_cluster_key(self, cluster, operations):
        return self._key(cluster, operations, "cluster")

    def generate_secret_key(self, cluster, operations):
        return self._key(cluster, operations, "secret")

    def encrypt(self, key: AdditiveKey, value: Any) -> List[Any]:
        self.encrypt_calls += 1
        if isinstance(value, int):
            if not 0 <= value < MODULUS:
                raise ValueError("integer outside the supported range")
            shares = [secrets.randbelow(MODULUS) for _ in range(key.size - 1)]
            return shares + [(value - sum(shares)) % MODULUS]

        tag = "s" if isinstance(value, str) else "b"
        data = value.encode() if isinstance(value, str) else bytes(value)
        masks = [secrets.token_bytes(len(data)) for _ in range(key.size - 1)]
        last = bytearray(data)
        for mask in masks:
            last = bytearray(a ^ b for a, b in zip(last, mask))
        return [f"{tag}:{part.hex()}" for part in masks + [bytes(last)]]

    def decrypt(self, key: AdditiveKey, shares: Sequence[Any]) -> Any:
        self.decrypt_calls += 1
        if len(shares) != key.size:
            raise ValueError("wrong number of shares")
        if all(isinstance(share, int) for share in shares):
            return sum(shares) % MODULUS
        if not all(isinstance(share, str) for share in shares):
            raise TypeError("mixed share types")

        tags = {share.split(":", 1)[0] for share in shares}
        if len(tags) != 1:
            raise ValueError("mixed share types")
        parts = [bytes.fromhex(share.split(":", 1)[1]) for share in shares]
        data = bytearray(parts[0])
        for part in parts[1:]:
            data = bytearray(a ^ b for a, b in zip(data, part))
        return data.decode() if tags == {"s"} else bytes(data)


# ============================================================================
# Codec fixtures
# ============================================================================


@pytest.fixture
def primitive():
    """Fresh additive primitive."""
    return AdditivePrimitive()


@pytest.fixture
def codec(primitive):
    """Codec initialized for a 3-node cluster."""
    codec = ShareCodec(primitive=primitive)
    codec.initialize(Cluster.of_size(3), mode=KeyMode.CLUSTER)
    return codec


@pytest.fixture
def uninitialized_codec(primitive):
    return ShareCodec(primitive=primitive)


# ============================================================================
# Node set fixtures
# ============================================================================


@pytest.fixture
def org_secret_key():
    """Hex-encoded secp256k1 private key."""
    private_key = ec.generate_private_key(ec.SECP256K1())
    return f"{private_key.private_numbers().private_value:064x}"


@pytest.fixture
def credentials(org_secret_key):
    return OrgCredentials(secret_key=org_secret_key, org_did="did:nil:testnet:org")


@pytest.fixture
def nodes():
    """Three nodes in cluster order."""
    return [
        NodeConfig(url=f"https://node-{i}.vault.test", did=f"did:nil:testnet:node{i}")
        for i in range(1, 4)
    ]


@pytest.fixture
def memory_transport(nodes):
    return MemoryTransport(nodes)


@pytest.fixture
def session(nodes, credentials, memory_transport, primitive):
    """Session over the in-memory node set (call ``await session.init()``)."""
    return NodeSetSession(
        nodes,
        credentials,
        schema_id="schema-1",
        transport=memory_transport,
        codec=ShareCodec(primitive=primitive),
    )

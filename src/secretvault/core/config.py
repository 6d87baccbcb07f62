"""Organization and node configuration.

An organization talks to a fixed, ordered list of SecretVault nodes. The
order matters: share ``i`` of every secret value is always sent to node
``i``, so the same order must be used for every operation on a dataset.

Configuration can be built in code, from a dict, or from the environment::

    NILLION_ORG_SECRET_KEY=<hex secp256k1 key>
    NILLION_ORG_DID=did:nil:testnet:...
    SECRETVAULT_NODES='[{"url": "https://node-a", "did": "did:nil:..."}, ...]'
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class NodeConfig:
    """One SecretVault node: its base URL and its DID (token audience)."""

    url: str
    did: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "did": self.did}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NodeConfig":
        """Create from dictionary."""
        url = data.get("url")
        if not url:
            raise ConfigurationError(f"Node entry without url: {dict(data)!r}")
        return cls(url=str(url).rstrip("/"), did=data.get("did", ""))


@dataclass(frozen=True)
class OrgCredentials:
    """Organization signing credentials."""

    secret_key: str  # hex-encoded secp256k1 private key
    org_did: str

    def __repr__(self) -> str:
        return f"OrgCredentials(org_did={self.org_did!r}, secret_key=<redacted>)"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrgCredentials":
        """Create from dictionary (``secret_key``/``secretKey`` and ``org_did``/``orgDid``)."""
        secret_key = data.get("secret_key") or data.get("secretKey")
        org_did = data.get("org_did") or data.get("orgDid")
        if not secret_key or not org_did:
            raise ConfigurationError("Organization credentials need both a secret key and a DID")
        return cls(secret_key=secret_key, org_did=org_did)


@dataclass
class OrgConfig:
    """Credentials plus the ordered node list of an organization."""

    credentials: Optional[OrgCredentials] = None
    nodes: List[NodeConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        urls = [node.url for node in self.nodes]
        if len(set(urls)) != len(urls):
            raise ConfigurationError(f"Duplicate node urls in configuration: {urls}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrgConfig":
        """Create from a dict shaped like ``{"org_credentials": {...}, "nodes": [...]}``."""
        creds = data.get("org_credentials") or data.get("orgCredentials")
        return cls(
            credentials=OrgCredentials.from_dict(creds) if creds else None,
            nodes=[NodeConfig.from_dict(n) for n in data.get("nodes", [])],
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OrgConfig":
        """Load configuration from environment variables."""
        env = os.environ if environ is None else environ

        secret_key = env.get("NILLION_ORG_SECRET_KEY", "")
        org_did = env.get("NILLION_ORG_DID", "")
        credentials = None
        if secret_key or org_did:
            credentials = OrgCredentials.from_dict({"secret_key": secret_key, "org_did": org_did})

        raw_nodes = env.get("SECRETVAULT_NODES", "[]")
        try:
            node_list = json.loads(raw_nodes)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"SECRETVAULT_NODES is not valid JSON: {e}") from e
        if not isinstance(node_list, list):
            raise ConfigurationError("SECRETVAULT_NODES must be a JSON list of {url, did} objects")

        return cls(
            credentials=credentials,
            nodes=[NodeConfig.from_dict(n) for n in node_list],
        )

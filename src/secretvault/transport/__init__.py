"""Transports and credentials for SecretVault nodes."""

from .adapter import NodeTransport, TransportConfig
from .auth import CredentialSigner, JwtSigner
from .http import HttpTransport
from .memory import MemoryNode, MemoryTransport

__all__ = [
    "NodeTransport",
    "TransportConfig",
    "HttpTransport",
    "MemoryTransport",
    "MemoryNode",
    "CredentialSigner",
    "JwtSigner",
]

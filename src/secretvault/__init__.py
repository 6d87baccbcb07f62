"""SecretVault - secret-shared record storage across a set of nodes.

SecretVault provides:
- Share codec (``$allot``-marked fields split into one share per node)
- Record distribution and reconciliation across an ordered node set
- Node-set session (write, read, update, delete, flush, schemas)
- HTTP and in-memory node transports with ES256K node tokens
"""

__version__ = "0.1.0"

from .codec import Cluster, KeyMaterial, KeyMode, Operation, ShareCodec
from .core import (
    ConfigurationError,
    CredentialError,
    InconsistentShardsError,
    InsufficientSharesError,
    InvalidRecordError,
    MalformedSharesError,
    NodeConfig,
    NodeSetUnavailableError,
    NotInitializedError,
    OrgConfig,
    OrgCredentials,
    PartialNodeFailure,
    SecretVaultError,
    ShareCodecError,
    TransportError,
)
from .session import NodeOutcome, NodeOutcomes, NodeSetSession
from .transport import HttpTransport, JwtSigner, MemoryTransport

__all__ = [
    "__version__",
    # Session
    "NodeSetSession",
    "NodeOutcome",
    "NodeOutcomes",
    # Codec
    "ShareCodec",
    "Cluster",
    "KeyMaterial",
    "KeyMode",
    "Operation",
    # Transport
    "HttpTransport",
    "MemoryTransport",
    "JwtSigner",
    # Config
    "NodeConfig",
    "OrgConfig",
    "OrgCredentials",
    # Exceptions
    "SecretVaultError",
    "ConfigurationError",
    "ShareCodecError",
    "NotInitializedError",
    "MalformedSharesError",
    "InconsistentShardsError",
    "InvalidRecordError",
    "InsufficientSharesError",
    "TransportError",
    "CredentialError",
    "PartialNodeFailure",
    "NodeSetUnavailableError",
]

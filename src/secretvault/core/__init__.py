"""SecretVault Core - configuration, defaults and the exception hierarchy."""

from .config import NodeConfig, OrgConfig, OrgCredentials
from .exceptions import (
    ConfigurationError,
    CredentialError,
    InconsistentShardsError,
    InsufficientSharesError,
    InvalidRecordError,
    MalformedSharesError,
    NodeSetUnavailableError,
    NotInitializedError,
    PartialNodeFailure,
    SecretVaultError,
    ShareCodecError,
    TransportError,
)

__all__ = [
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

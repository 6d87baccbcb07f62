"""Exception hierarchy for SecretVault wrappers.

Codec errors (``ShareCodecError`` and subclasses) abort the enclosing call:
a single record can never be partially recombined. Per-node transport
failures are captured as ``NodeOutcome`` values by the session and only
become ``PartialNodeFailure`` / ``NodeSetUnavailableError`` when the caller
asks for it.
"""

from __future__ import annotations

from typing import Any


class SecretVaultError(Exception):
    """Base exception for all SecretVault wrapper errors."""
    pass


class ConfigurationError(SecretVaultError):
    """Raised when nodes, credentials or key settings are invalid."""
    pass


# =============================================================================
# CODEC ERRORS
# =============================================================================


class ShareCodecError(SecretVaultError):
    """Base exception for secret-sharing codec errors."""
    pass


class NotInitializedError(ShareCodecError):
    """Raised when an operation needs key material that does not exist yet."""

    def __init__(self, message: str = "ShareCodec not initialized. Call initialize() first."):
        super().__init__(message)


class MalformedSharesError(ShareCodecError):
    """Raised when a share sequence cannot be decrypted with the key."""

    def __init__(self, message: str, expected: int | None = None, received: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.received = received


class InconsistentShardsError(ShareCodecError):
    """Raised when node shards disagree in structure or plain values."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{message} at {path}" if path else message)
        self.path = path


class InvalidRecordError(ShareCodecError):
    """Raised when a record marks something other than a scalar."""
    pass


# =============================================================================
# RECONCILIATION ERRORS
# =============================================================================


class InsufficientSharesError(SecretVaultError):
    """Raised when fewer than N shards of a secret record are available."""

    def __init__(self, record_id: Any, available: int, required: int):
        super().__init__(
            f"Record {record_id!r} has {available} of {required} shards; "
            f"secret fields cannot be recombined"
        )
        self.record_id = record_id
        self.available = available
        self.required = required


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================


class TransportError(SecretVaultError):
    """Raised when a node request fails.

    ``status`` is the HTTP status, or ``None`` when no response arrived
    (connection error, timeout, undecodable body).
    """

    def __init__(self, message: str, status: int | None = None, body: str = "", node: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body
        self.node = node


class CredentialError(SecretVaultError):
    """Raised when a node token cannot be minted."""
    pass


class PartialNodeFailure(SecretVaultError):
    """Raised on request when some, but not all, nodes failed an operation."""

    def __init__(self, outcomes: list):
        failed = [o for o in outcomes if not o.ok]
        super().__init__(
            f"{len(failed)} of {len(outcomes)} nodes failed: "
            + ", ".join(f"{o.node} ({o.error})" for o in failed)
        )
        self.outcomes = outcomes


class NodeSetUnavailableError(SecretVaultError):
    """Raised when every node in the cluster failed an operation."""

    def __init__(self, outcomes: list):
        super().__init__(
            f"All {len(outcomes)} nodes failed: "
            + ", ".join(f"{o.node} ({o.error})" for o in outcomes)
        )
        self.outcomes = outcomes

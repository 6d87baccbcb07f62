"""Centralized configurable defaults for SecretVault wrappers.

All tunable parameters in one place. Values that differ between deployments
can be overridden through environment variables.
"""

from __future__ import annotations

import os

# Wire markers
ALLOT_MARKER = "$allot"
ID_FIELD = "_id"

# Per-node metadata that legitimately differs between nodes
VOLATILE_FIELDS = ("_created", "_updated")

# Node API
API_PREFIX = os.environ.get("SECRETVAULT_API_PREFIX", "/api/v1")
REQUEST_TIMEOUT = float(os.environ.get("SECRETVAULT_REQUEST_TIMEOUT", "30.0"))

# Bearer tokens
TOKEN_EXPIRY_SECONDS = int(os.environ.get("SECRETVAULT_TOKEN_EXPIRY_SECONDS", "3600"))  # 1 hour
TOKEN_ALGORITHM = "ES256K"

# Default nilql capability
DEFAULT_OPERATION = "store"

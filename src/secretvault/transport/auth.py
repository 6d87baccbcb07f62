"""
Node credentials - short-lived JWTs signed with the organization key.

Every node authenticates requests with a bearer token whose claims are:

- ``iss``: the organization DID
- ``aud``: the node DID
- ``iat``/``exp``: issue time and expiry

Tokens are signed ES256K with the organization's secp256k1 secret key.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol, runtime_checkable

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from ..core.config import OrgCredentials
from ..core.defaults import TOKEN_ALGORITHM, TOKEN_EXPIRY_SECONDS
from ..core.exceptions import CredentialError

logger = logging.getLogger(__name__)


@runtime_checkable
class CredentialSigner(Protocol):
    """Mints a bearer token for one audience (node DID)."""

    def sign(self, audience: str) -> str: ...


class JwtSigner:
    """
    ES256K JWT signer built on PyJWT and a cryptography secp256k1 key.

    Example:
        signer = JwtSigner(secret_key_hex, issuer="did:nil:testnet:nillion1...")
        token = signer.sign("did:nil:testnet:nillion1node...")
    """

    def __init__(
        self,
        secret_key_hex: str,
        issuer: str,
        expiry_seconds: int = TOKEN_EXPIRY_SECONDS,
    ):
        if not issuer:
            raise CredentialError("Organization DID is required to sign node tokens")
        self.issuer = issuer
        self.expiry_seconds = expiry_seconds
        self._private_key = self._load_key(secret_key_hex)

    @staticmethod
    def _load_key(secret_key_hex: str) -> ec.EllipticCurvePrivateKey:
        try:
            value = int(secret_key_hex.removeprefix("0x"), 16)
            return ec.derive_private_key(value, ec.SECP256K1())
        except (AttributeError, TypeError, ValueError) as e:
            raise CredentialError(f"Invalid organization secret key: {e}") from e

    @classmethod
    def from_credentials(
        cls, credentials: OrgCredentials, expiry_seconds: int = TOKEN_EXPIRY_SECONDS
    ) -> "JwtSigner":
        return cls(credentials.secret_key, credentials.org_did, expiry_seconds)

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._private_key.public_key()

    def sign(self, audience: str, now: Optional[int] = None) -> str:
        """
        Create a token for ``audience``.

        Raises:
            CredentialError: If the audience is empty or signing fails
        """
        if not audience:
            raise CredentialError("Node DID is required as token audience")

        issued_at = int(time.time()) if now is None else now
        claims = {
            "iss": self.issuer,
            "aud": audience,
            "iat": issued_at,
            "exp": issued_at + self.expiry_seconds,
        }
        try:
            token = jwt.encode(claims, self._private_key, algorithm=TOKEN_ALGORITHM)
        except (jwt.PyJWTError, NotImplementedError, ValueError) as e:
            raise CredentialError(f"Failed to sign token for {audience}: {e}") from e

        logger.debug(f"Signed token for {audience}, expires in {self.expiry_seconds}s")
        return token

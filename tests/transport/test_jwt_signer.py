"""Tests for JwtSigner."""

from __future__ import annotations

import time

import jwt
import pytest

from secretvault.core import CredentialError, OrgCredentials
from secretvault.transport import JwtSigner


@pytest.fixture
def signer(credentials):
    return JwtSigner.from_credentials(credentials)


class TestJwtSigner:
    """Tests for token minting."""

    def test_claims(self, signer):
        token = signer.sign("did:nil:testnet:node1", now=1_700_000_000)
        claims = jwt.decode(
            token,
            signer.public_key,
            algorithms=["ES256K"],
            audience="did:nil:testnet:node1",
            options={"verify_exp": False},
        )
        assert claims == {
            "iss": "did:nil:testnet:org",
            "aud": "did:nil:testnet:node1",
            "iat": 1_700_000_000,
            "exp": 1_700_003_600,
        }

    def test_header_algorithm(self, signer):
        assert jwt.get_unverified_header(signer.sign("did:nil:testnet:node1"))["alg"] == "ES256K"

    def test_custom_expiry(self, credentials):
        signer = JwtSigner.from_credentials(credentials, expiry_seconds=60)
        claims = jwt.decode(
            signer.sign("aud"), signer.public_key, algorithms=["ES256K"], audience="aud"
        )
        assert claims["exp"] - claims["iat"] == 60
        assert claims["iat"] <= int(time.time())

    def test_wrong_audience_rejected_by_verifier(self, signer):
        token = signer.sign("did:nil:testnet:node1")
        with pytest.raises(jwt.InvalidAudienceError):
            jwt.decode(token, signer.public_key, algorithms=["ES256K"], audience="did:nil:testnet:node2")

    def test_accepts_0x_prefix(self, org_secret_key):
        signer = JwtSigner("0x" + org_secret_key, issuer="did:nil:testnet:org")
        assert JwtSigner(org_secret_key, "did:nil:testnet:org").public_key.public_numbers() == (
            signer.public_key.public_numbers()
        )

    @pytest.mark.parametrize("bad_key", ["", "not-hex", "00"])
    def test_invalid_key(self, bad_key):
        with pytest.raises(CredentialError):
            JwtSigner(bad_key, issuer="did:nil:testnet:org")

    def test_requires_issuer(self, org_secret_key):
        with pytest.raises(CredentialError):
            JwtSigner(org_secret_key, issuer="")

    def test_requires_audience(self, signer):
        with pytest.raises(CredentialError):
            signer.sign("")

    def test_credentials_repr_redacts_key(self, credentials):
        assert credentials.secret_key not in repr(credentials)
        assert isinstance(credentials, OrgCredentials)

"""Tests for the transport adapter layer.

Covers:
* Interface contract (``NodeTransport`` protocol conformance)
* ``TransportConfig`` defaults and overrides
"""

from __future__ import annotations

from typing import Any

from secretvault.transport import (
    CredentialSigner,
    HttpTransport,
    JwtSigner,
    MemoryTransport,
    NodeTransport,
    TransportConfig,
)

# =========================================================================
# Dataclass unit tests
# =========================================================================


class TestTransportConfig:
    """Tests for :class:`TransportConfig`."""

    def test_defaults(self) -> None:
        cfg = TransportConfig()
        assert cfg.api_prefix == "/api/v1"
        assert cfg.request_timeout == 30.0
        assert cfg.headers == {}

    def test_override(self) -> None:
        cfg = TransportConfig(api_prefix="/v2", request_timeout=5.0, headers={"X-Trace": "1"})
        assert cfg.api_prefix == "/v2"
        assert cfg.request_timeout == 5.0
        assert cfg.headers == {"X-Trace": "1"}

    def test_headers_not_shared(self) -> None:
        a, b = TransportConfig(), TransportConfig()
        a.headers["X"] = "1"
        assert b.headers == {}


# =========================================================================
# Protocol conformance
# =========================================================================


class TestProtocolConformance:
    """Backends satisfy the protocols structurally."""

    def test_http_transport(self) -> None:
        assert isinstance(HttpTransport(), NodeTransport)

    def test_memory_transport(self) -> None:
        assert isinstance(MemoryTransport(), NodeTransport)

    def test_duck_typed_transport(self) -> None:
        class Minimal:
            async def request(self, node, operation, token, payload=None, method="POST") -> Any:
                return {}

        assert isinstance(Minimal(), NodeTransport)

    def test_non_transport(self) -> None:
        assert not isinstance(object(), NodeTransport)

    def test_jwt_signer(self, credentials) -> None:
        assert isinstance(JwtSigner.from_credentials(credentials), CredentialSigner)

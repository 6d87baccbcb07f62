"""Node transport interface.

A transport performs one JSON request against one node. The session never
sees HTTP: it hands a node, an API operation (``data/read``, ``schemas``,
...), the node's bearer token and a payload to ``NodeTransport.request``
and gets the decoded response back.

Backends:
* ``secretvault.transport.http`` - aiohttp client for live nodes
* ``secretvault.transport.memory`` - in-process node set
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..core.config import NodeConfig
from ..core.defaults import API_PREFIX, REQUEST_TIMEOUT

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class TransportConfig:
    """HTTP settings for ``HttpTransport``; defaults come from ``core.defaults``."""

    # Path prefix of the node API, e.g. https://node/api/v1/data/read
    api_prefix: str = API_PREFIX

    # Timeout (seconds) for one node request
    request_timeout: float = REQUEST_TIMEOUT

    # Extra headers sent with every request
    headers: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class NodeTransport(Protocol):
    """Structural interface of a node transport; backends do not subclass it."""

    async def request(
        self,
        node: NodeConfig,
        operation: str,
        token: str,
        payload: Optional[Dict[str, Any]] = None,
        method: str = "POST",
    ) -> Dict[str, Any]:
        """Send *payload* to *operation* on *node* and return the decoded response.

        Raises:
            TransportError: On a non-success status, a connection failure or
                an undecodable response body.
        """
        ...

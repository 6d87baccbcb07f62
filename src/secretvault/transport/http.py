"""
HTTP transport for SecretVault nodes.

Every node exposes a JSON API under ``/api/v1``:

- POST data/create, data/read, data/update, data/delete, data/flush
- GET/POST/DELETE schemas

Requests carry the node's bearer token. Any non-2xx status, connection
failure, timeout or undecodable body surfaces as ``TransportError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..core.config import NodeConfig
from ..core.exceptions import TransportError
from .adapter import TransportConfig

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    :class:`NodeTransport` over HTTP, built on aiohttp.

    Example:
        transport = HttpTransport()
        data = await transport.request(node, "data/read", token, {"schema": sid, "filter": {}})
    """

    def __init__(self, config: Optional[TransportConfig] = None):
        self.config = config or TransportConfig()

    def url_for(self, node: NodeConfig, operation: str) -> str:
        prefix = self.config.api_prefix.rstrip("/")
        return f"{node.url.rstrip('/')}{prefix}/{operation.lstrip('/')}"

    async def request(
        self,
        node: NodeConfig,
        operation: str,
        token: str,
        payload: Optional[Dict[str, Any]] = None,
        method: str = "POST",
    ) -> Dict[str, Any]:
        """
        Perform one request against one node.

        Args:
            node: Target node
            operation: API path below the prefix (e.g. ``data/read``)
            token: Bearer token for this node
            payload: JSON body (ignored for GET)
            method: HTTP method

        Returns:
            Decoded JSON response (``{}`` for an empty body)

        Raises:
            TransportError: If the request fails
        """
        url = self.url_for(node, operation)
        method = method.upper()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self.config.headers,
        }
        body = None if method == "GET" else (payload if payload is not None else {})

        try:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, json=body, headers=headers) as resp:
                    status = resp.status
                    raw = await resp.read()
        except aiohttp.ClientError as e:
            raise TransportError(f"Connection error: {e}", node=node.url) from e
        except asyncio.TimeoutError:
            raise TransportError("Request timeout", node=node.url)

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TransportError(
                f"Undecodable response body (status {status}): {e}",
                status=status,
                body=raw.decode("utf-8", errors="replace"),
                node=node.url,
            ) from e

        if not 200 <= status < 300:
            raise TransportError(
                f"HTTP error! status: {status}, body: {text}",
                status=status,
                body=text,
                node=node.url,
            )

        logger.debug(f"{method} {url} -> {status}")

        if not text:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise TransportError(
                f"Malformed response body: {e}",
                status=status,
                body=text,
                node=node.url,
            ) from e

        if not isinstance(data, dict):
            raise TransportError(
                "Malformed response body: expected a JSON object",
                status=status,
                body=text,
                node=node.url,
            )
        return data

"""
Backend Client

Thin httpx wrapper around the todo backend. Responses are returned as-is
(status, body, content-type); only transport failures raise.
"""

import logging
from typing import Optional

import httpx

from core.exceptions import DownstreamUnavailable

logger = logging.getLogger(__name__)

# Hop-by-hop and length headers are recomputed by the server
FORWARDED_REQUEST_HEADERS = ("content-type", "accept")
FORWARDED_RESPONSE_HEADERS = ("content-type", "location", "cache-control", "etag", "last-modified")


class BackendClient:
    """
    HTTP client for the todo backend.

    Usage:
        client = BackendClient("http://todo-backend:8001", timeout=5.0)
        response = await client.forward("GET", "/todos")
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()

    async def forward(
        self,
        method: str,
        path: str,
        content: bytes = b"",
        headers: Optional[dict] = None,
        params: Optional[str] = None,
    ) -> httpx.Response:
        """
        Send one request to the backend.

        Raises:
            DownstreamUnavailable: If the backend cannot be reached
        """
        forwarded = {
            k: v for k, v in (headers or {}).items()
            if k.lower() in FORWARDED_REQUEST_HEADERS
        }
        url = f"{path}?{params}" if params else path
        try:
            response = await self.http_client.request(
                method, url, content=content or None, headers=forwarded
            )
        except httpx.HTTPError as e:
            logger.error(f"[TodoProxy] {method} {path} failed: {type(e).__name__}: {e}")
            raise DownstreamUnavailable(
                url=f"{self.base_url}{path}", original_error=e
            )

        logger.info(f"[TodoProxy] {method} {path} -> {response.status_code}")
        return response

    async def probe(self, path: str) -> httpx.Response:
        """Lightweight GET used by the readiness check."""
        return await self.forward("GET", path)

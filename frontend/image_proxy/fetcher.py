"""
Image Fetcher

Downloads the configured image from the external source.
Every failure mode (timeout, transport error, non-2xx, empty or
oversized payload) is reported as UpstreamFetchError.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"

# URL extension fallback when upstream sends a bad content-type
EXT_TO_MIME = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}


@dataclass
class FetchedImage:
    """Raw result of a successful upstream fetch."""
    url: str
    data: bytes
    content_type: str


def normalize_content_type(header_value: Optional[str], url: str) -> str:
    """
    Pick a usable image MIME type.

    The header wins when it names an image type. Otherwise the URL
    extension is tried, then the default (picsum and similar sources
    sometimes answer application/octet-stream).
    """
    content_type = (header_value or "").split(";")[0].strip().lower()
    if content_type.startswith("image/"):
        return content_type

    url_lower = url.lower().split("?")[0]
    for ext, mime in EXT_TO_MIME.items():
        if url_lower.endswith(ext):
            return mime

    if content_type:
        logger.warning(f"[ImageFetcher] Non-image content-type {content_type!r}, assuming {DEFAULT_CONTENT_TYPE}")
    return DEFAULT_CONTENT_TYPE


class ImageFetcher:
    """
    Fetches images over HTTP with a bounded timeout.

    Usage:
        fetcher = ImageFetcher(timeout=10.0)
        image = await fetcher.fetch("https://picsum.photos/1200")
        await fetcher.close()
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_image_size_mb: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_image_size_bytes = max_image_size_mb * 1024 * 1024
        self.http_client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": "todo-frontend/1.0",
                "Accept": "image/*,*/*;q=0.8",
            },
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()

    async def fetch(self, url: str) -> FetchedImage:
        """
        Download one image.

        Raises:
            UpstreamFetchError: On any failure to obtain a usable payload
        """
        try:
            logger.info(f"[ImageFetcher] Fetching: {url[:80]}")
            response = await self.http_client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamFetchError("Image fetch timeout", url=url, original_error=e)
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                f"Image source returned {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            )
        except httpx.HTTPError as e:
            raise UpstreamFetchError("Image source unreachable", url=url, original_error=e)
        except httpx.InvalidURL as e:
            raise UpstreamFetchError("Invalid image URL", url=url, original_error=e)

        data = response.content
        if not data:
            raise UpstreamFetchError("Image source returned an empty body", url=url)
        if len(data) > self.max_image_size_bytes:
            raise UpstreamFetchError(
                f"Image too large ({len(data)} bytes)",
                url=url,
                status_code=response.status_code,
            )

        content_type = normalize_content_type(response.headers.get("content-type"), url)
        logger.info(f"[ImageFetcher] Fetched {len(data)} bytes ({content_type})")
        return FetchedImage(url=url, data=data, content_type=content_type)

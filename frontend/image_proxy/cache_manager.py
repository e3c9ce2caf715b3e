"""
Image Cache Manager
图片缓存管理器

Single-slot file cache for the rotating frontend image:
- TTL-based refresh (CACHE_DURATION_MS)
- Single-flight: at most one upstream fetch in flight
- Atomic payload replacement (temp file + os.replace)
- Stale fallback when a refresh fails
- Metadata persisted to disk, restored on startup
"""

import os
import time
import json
import asyncio
import tempfile
import uuid
from pathlib import Path
from typing import Callable, Optional, Protocol
from dataclasses import dataclass, asdict
import logging

from core.exceptions import UpstreamFetchError, CacheWriteError
from .fetcher import FetchedImage

logger = logging.getLogger(__name__)

CACHE_HIT = "HIT"
CACHE_MISS = "MISS"
CACHE_STALE = "STALE"

EXT_MAP = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/x-icon": ".ico",
    "image/avif": ".avif",
}


def _consume_result(task: "asyncio.Task") -> None:
    # Every caller may have gone away; mark the exception as retrieved
    if not task.cancelled():
        task.exception()


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchedImage: ...


@dataclass
class CacheEntry:
    """Metadata for the cached image. Replaced wholesale, never patched."""
    image_path: str
    source_url: str
    content_type: str
    size_bytes: int
    fetched_at: float


@dataclass
class CachedImage:
    """What a caller gets back from the cache."""
    data: bytes
    content_type: str
    fetched_at: float
    cache_status: str


class ImageCacheManager:
    """
    Owns the single cache slot and its guard.

    Cache structure:
    cache_dir/
    ├── current-1a2b3c4d.jpg
    └── metadata.json

    Every read and write of the slot happens under self._lock. A refresh
    runs as one shared task; requests arriving while it is in flight
    await the same task instead of starting their own fetch.
    """

    METADATA_FILENAME = "metadata.json"
    PAYLOAD_STEM = "current"

    def __init__(
        self,
        cache_dir: str,
        source_url: str,
        cache_ttl_seconds: float,
        fetcher: Fetcher,
        clock: Callable[[], float] = time.time,
    ):
        self.cache_dir = Path(cache_dir)
        self.metadata_file = self.cache_dir / self.METADATA_FILENAME
        self.source_url = source_url
        self.cache_ttl_seconds = cache_ttl_seconds
        self.fetcher = fetcher
        self._clock = clock

        self._entry: Optional[CacheEntry] = None
        self._lock = asyncio.Lock()
        self._inflight: Optional["asyncio.Task[CachedImage]"] = None

        self.fetch_count = 0
        self.stale_served_count = 0

        self._init_cache_dir()
        self._load_metadata()

    def _init_cache_dir(self) -> None:
        """Create cache directory if it doesn't exist."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"[ImageCache] Cache directory: {self.cache_dir}")

    def _load_metadata(self) -> None:
        """Restore the slot from disk if the payload is still intact."""
        if not self.metadata_file.exists():
            return
        try:
            with open(self.metadata_file, "r") as f:
                entry = CacheEntry(**json.load(f))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"[ImageCache] Failed to load metadata: {e}")
            return

        path = Path(entry.image_path)
        if not path.is_file() or path.stat().st_size == 0:
            logger.warning(f"[ImageCache] Discarding metadata, payload missing or empty: {path}")
            return

        self._entry = entry
        logger.info(f"[ImageCache] Restored cached image from {entry.source_url[:60]}")

    def _save_metadata(self, entry: CacheEntry) -> None:
        """
        Persist metadata atomically.

        Raises:
            CacheWriteError: If metadata.json cannot be replaced
        """
        try:
            self._atomic_write(self.metadata_file, json.dumps(asdict(entry), indent=2).encode())
        except OSError as e:
            raise CacheWriteError(
                "Metadata write failed", path=str(self.metadata_file), original_error=e
            )

    def _atomic_write(self, target: Path, data: bytes) -> None:
        """Write to a temp file in the same directory, then rename over target."""
        fd, tmp_path = tempfile.mkstemp(
            dir=self.cache_dir, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except OSError:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise

    def _payload_path(self, content_type: str) -> Path:
        # New name per fetch, so the live payload is never overwritten in place
        ext = EXT_MAP.get(content_type, ".bin")
        return self.cache_dir / f"{self.PAYLOAD_STEM}-{uuid.uuid4().hex[:8]}{ext}"

    def _remove_payload(self, path: str) -> None:
        try:
            os.unlink(path)
        except OSError as e:
            logger.warning(f"[ImageCache] Failed to remove payload: {e}")

    def _is_stale(self, entry: CacheEntry) -> bool:
        if entry.source_url != self.source_url:
            return True
        return self._clock() - entry.fetched_at >= self.cache_ttl_seconds

    def _read_payload(self, entry: CacheEntry) -> Optional[bytes]:
        """Read cached bytes (assumes lock held)."""
        try:
            with open(entry.image_path, "rb") as f:
                data = f.read()
        except OSError as e:
            logger.error(f"[ImageCache] Failed to read cache: {e}")
            return None
        if not data:
            logger.warning(f"[ImageCache] Cache file empty: {entry.image_path}")
            return None
        return data

    def _store(self, fetched: FetchedImage) -> CacheEntry:
        """
        Replace the slot with a freshly fetched image (assumes lock held).

        The payload goes to a fresh file and metadata.json is switched over
        to it before the in-memory entry changes.

        Raises:
            CacheWriteError: If the payload or the metadata cannot be
                written. The previous entry and its file are left untouched.
        """
        path = self._payload_path(fetched.content_type)
        try:
            self._atomic_write(path, fetched.data)
        except OSError as e:
            raise CacheWriteError(path=str(path), original_error=e)

        entry = CacheEntry(
            image_path=str(path),
            source_url=fetched.url,
            content_type=fetched.content_type,
            size_bytes=len(fetched.data),
            fetched_at=self._clock(),
        )
        try:
            self._save_metadata(entry)
        except CacheWriteError:
            self._remove_payload(str(path))
            raise

        previous = self._entry
        self._entry = entry
        if previous is not None:
            self._remove_payload(previous.image_path)

        logger.info(f"[ImageCache] Cached: {fetched.url[:60]} ({len(fetched.data)} bytes)")
        return entry

    async def get_image(self) -> CachedImage:
        """
        Get the image, refreshing it if the slot is empty or expired.

        Returns:
            CachedImage with cache_status HIT, MISS or STALE.

        Raises:
            UpstreamFetchError / CacheWriteError: Only when the refresh
                fails and there is no previous image to fall back to.
        """
        async with self._lock:
            entry = self._entry
            if entry is not None and not self._is_stale(entry):
                data = self._read_payload(entry)
                if data is not None:
                    return CachedImage(data, entry.content_type, entry.fetched_at, CACHE_HIT)
                self._entry = None

            if self._inflight is None:
                self._inflight = asyncio.create_task(self._refresh())
                self._inflight.add_done_callback(_consume_result)
            inflight = self._inflight

        # shield: a disconnecting client must not cancel the shared fetch
        return await asyncio.shield(inflight)

    async def _refresh(self) -> CachedImage:
        try:
            try:
                fetched = await self.fetcher.fetch(self.source_url)
                async with self._lock:
                    entry = self._store(fetched)
                    self.fetch_count += 1
                return CachedImage(fetched.data, entry.content_type, entry.fetched_at, CACHE_MISS)
            except (UpstreamFetchError, CacheWriteError) as e:
                logger.error(f"[ImageCache] Refresh failed: {e.message} {e.details}")
                async with self._lock:
                    stale = self._entry
                    data = self._read_payload(stale) if stale is not None else None
                    if stale is None or data is None:
                        self._entry = None
                        raise
                    self.stale_served_count += 1
                logger.warning(
                    f"[ImageCache] Serving stale image fetched at {stale.fetched_at:.0f}"
                )
                return CachedImage(data, stale.content_type, stale.fetched_at, CACHE_STALE)
        finally:
            async with self._lock:
                self._inflight = None

    async def get_stats(self) -> dict:
        """Get cache statistics."""
        async with self._lock:
            entry = self._entry
            stats = {
                "cached": entry is not None,
                "source_url": self.source_url,
                "content_type": None,
                "size_bytes": 0,
                "fetched_at": None,
                "age_seconds": None,
                "is_expired": True,
                "cache_duration_ms": int(self.cache_ttl_seconds * 1000),
                "fetch_count": self.fetch_count,
                "stale_served_count": self.stale_served_count,
                "refresh_in_flight": self._inflight is not None,
            }
            if entry is not None:
                stats.update(
                    source_url=entry.source_url,
                    content_type=entry.content_type,
                    size_bytes=entry.size_bytes,
                    fetched_at=entry.fetched_at,
                    age_seconds=round(self._clock() - entry.fetched_at, 3),
                    is_expired=self._is_stale(entry),
                )
            return stats

"""
Image Proxy Module

Serves one rotating image from an external source through a single-slot
file cache, so the source is contacted at most once per cache period.

Features:
- File-based caching with TTL expiry
- Single-flight refresh
- Stale fallback when the source fails
"""

from .routes import router
from .cache_manager import ImageCacheManager, CacheEntry, CachedImage
from .fetcher import ImageFetcher, FetchedImage

__all__ = [
    "router",
    "ImageCacheManager",
    "CacheEntry",
    "CachedImage",
    "ImageFetcher",
    "FetchedImage",
]

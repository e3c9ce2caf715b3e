"""
Image Proxy API Routes

Provides endpoints for:
- Serving the cached (or freshly fetched) image
- Cache statistics
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import BaseModel

from .cache_manager import ImageCacheManager

logger = logging.getLogger(__name__)


# ============================================
# Response Models
# ============================================

class ImageCacheStatsResponse(BaseModel):
    """Response model for stats endpoint"""
    cached: bool
    source_url: str
    content_type: Optional[str]
    size_bytes: int
    fetched_at: Optional[float]
    age_seconds: Optional[float]
    is_expired: bool
    cache_duration_ms: int
    fetch_count: int
    stale_served_count: int
    refresh_in_flight: bool


# ============================================
# Router
# ============================================

router = APIRouter(prefix="/image", tags=["Image Proxy"])


def get_cache_manager(request: Request) -> ImageCacheManager:
    return request.app.state.image_cache


# ============================================
# Endpoints
# ============================================

@router.get("")
async def get_image(request: Request):
    """
    Serve the rotating image.

    This endpoint:
    1. Returns the cached image while it is within CACHE_DURATION_MS
    2. Otherwise refreshes it from IMAGE_URL (one fetch at a time)
    3. Falls back to the stale image if the refresh fails
    4. Answers 502 only when nothing has ever been cached
    """
    cache_manager = get_cache_manager(request)
    image = await cache_manager.get_image()

    logger.debug(f"[ImageProxy] {image.cache_status}: {len(image.data)} bytes")
    return Response(
        content=image.data,
        media_type=image.content_type,
        headers={
            "X-Cache": image.cache_status,
            "Cache-Control": "no-cache",
        },
    )


@router.get("/stats", response_model=ImageCacheStatsResponse)
async def get_image_stats(request: Request):
    """
    Get cache statistics.

    Returns information about:
    - The cached entry (source, size, age)
    - Fetch and stale-serve counters
    """
    stats = await get_cache_manager(request).get_stats()
    return ImageCacheStatsResponse(**stats)

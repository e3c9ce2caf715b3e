"""
Core Module
核心模块

Shared configuration and exception types for the frontend service.
"""

from .config import Settings
from .exceptions import (
    FrontendError,
    UpstreamFetchError,
    CacheWriteError,
    DownstreamUnavailable,
    ConfigError,
)

__all__ = [
    "Settings",
    "FrontendError",
    "UpstreamFetchError",
    "CacheWriteError",
    "DownstreamUnavailable",
    "ConfigError",
]

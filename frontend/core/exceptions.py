"""
Frontend Service Exceptions

Domain-specific exceptions for the image cache, the todo API proxy
and the readiness probe.
"""

from typing import Optional, Any, Dict


class FrontendError(Exception):
    """Base exception for frontend service errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class UpstreamFetchError(FrontendError):
    """Raised when the external image source cannot deliver an image."""

    def __init__(
        self,
        message: str = "Image fetch failed",
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="UPSTREAM_FETCH_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class CacheWriteError(FrontendError):
    """Raised when the cached payload or its metadata cannot be written."""

    def __init__(
        self,
        message: str = "Cache write failed",
        path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if path:
            details["path"] = path
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=message, error_code="CACHE_WRITE_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class DownstreamUnavailable(FrontendError):
    """Raised when the backend store is unreachable."""

    def __init__(
        self,
        message: str = "Backend unavailable",
        url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if url:
            details["url"] = url
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="DOWNSTREAM_UNAVAILABLE", details=details
        )
        if original_error:
            self.__cause__ = original_error


class ConfigError(FrontendError):
    """Raised when an environment variable holds an invalid value."""

    def __init__(self, key: str, value: str, expected: str):
        super().__init__(
            message=f"Invalid value for {key}: {value!r} (expected {expected})",
            error_code="CONFIG_ERROR",
            details={"key": key, "value": value},
        )

"""
Frontend Service Configuration
前端服务配置

All settings come from environment variables (ConfigMap / Secret in
Kubernetes). Values are read once at startup into an immutable Settings.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigError


# ============================================
# Defaults
# ============================================

DEFAULT_IMAGE_URL = "https://picsum.photos/1200"
DEFAULT_CACHE_DURATION_MS = 10 * 60 * 1000  # 10 minutes
DEFAULT_IMAGE_DIR = "./image_cache"
DEFAULT_BACKEND_URL = "http://localhost:8001"
DEFAULT_BACKEND_PROBE_PATH = "/todos"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the frontend service."""
    image_url: str = DEFAULT_IMAGE_URL
    cache_duration_ms: int = DEFAULT_CACHE_DURATION_MS
    image_dir: str = DEFAULT_IMAGE_DIR
    backend_url: str = DEFAULT_BACKEND_URL
    backend_probe_path: str = DEFAULT_BACKEND_PROBE_PATH
    fetch_timeout_seconds: float = 10.0
    backend_timeout_seconds: float = 5.0
    image_max_size_mb: int = 10
    log_level: str = "INFO"
    port: int = 8000

    @property
    def cache_duration_seconds(self) -> float:
        return self.cache_duration_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ

        return cls(
            image_url=env.get("IMAGE_URL", DEFAULT_IMAGE_URL),
            cache_duration_ms=_int(env, "CACHE_DURATION_MS", DEFAULT_CACHE_DURATION_MS),
            image_dir=env.get("IMAGE_DIR", DEFAULT_IMAGE_DIR),
            backend_url=env.get("BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/"),
            backend_probe_path=env.get("BACKEND_PROBE_PATH", DEFAULT_BACKEND_PROBE_PATH),
            fetch_timeout_seconds=_float(env, "FETCH_TIMEOUT_SECONDS", 10.0),
            backend_timeout_seconds=_float(env, "BACKEND_TIMEOUT_SECONDS", 5.0),
            image_max_size_mb=_int(env, "IMAGE_MAX_SIZE_MB", 10),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            port=_int(env, "PORT", 8000),
        )


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(key, raw, "an integer")
    if value < 0:
        raise ConfigError(key, raw, "a non-negative integer")
    return value


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(key, raw, "a number")
    if value <= 0:
        raise ConfigError(key, raw, "a positive number")
    return value

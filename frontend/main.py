"""
Todo Frontend Service

FastAPI application deployed on Kubernetes in front of the todo backend.

Features
--------
- Rotating image (`/image`) served from a single-slot file cache.
- Todo API pass-through (`/todos`) to the backend service.
- Liveness probe (`/healthz`) and readiness probe (`/readyz`).

Notes
-----
- Configuration comes from environment variables (see core/config.py),
  normally supplied through ConfigMaps.
- Run with `uvicorn main:create_app --factory` or `python main.py`.
- IMAGE_DIR should point at a persistent volume so the cached image
  survives pod restarts.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.config import Settings
from core.exceptions import FrontendError
from health import ReadinessChecker, router as health_router
from image_proxy import ImageCacheManager, ImageFetcher, router as image_router
from todo_proxy import BackendClient, router as todo_router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    image_transport: Optional[httpx.AsyncBaseTransport] = None,
    backend_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the application and its collaborators.

    Args:
        settings: Service configuration (defaults to Settings.from_env())
        image_transport: Optional httpx transport for the image source
        backend_transport: Optional httpx transport for the todo backend
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    fetcher = ImageFetcher(
        timeout=settings.fetch_timeout_seconds,
        max_image_size_mb=settings.image_max_size_mb,
        transport=image_transport,
    )
    backend_client = BackendClient(
        settings.backend_url,
        timeout=settings.backend_timeout_seconds,
        transport=backend_transport,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Frontend starting: image={settings.image_url} "
            f"ttl={settings.cache_duration_ms}ms backend={settings.backend_url}"
        )
        yield
        await fetcher.close()
        await backend_client.close()

    app = FastAPI(title="Todo Frontend", lifespan=lifespan)

    app.state.settings = settings
    app.state.image_cache = ImageCacheManager(
        cache_dir=settings.image_dir,
        source_url=settings.image_url,
        cache_ttl_seconds=settings.cache_duration_seconds,
        fetcher=fetcher,
    )
    app.state.backend_client = backend_client
    app.state.readiness = ReadinessChecker(backend_client, settings.backend_probe_path)

    @app.exception_handler(FrontendError)
    async def frontend_error_handler(request: Request, exc: FrontendError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_code}: {exc.message}")
        return JSONResponse(
            status_code=502,
            content={"detail": exc.message, "error_code": exc.error_code},
        )

    app.include_router(health_router)
    app.include_router(image_router)
    app.include_router(todo_router)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)

"""
Health API Routes

Kubernetes probe endpoints:
- GET /healthz  - liveness, always 200
- GET /readyz   - readiness, 200 when the backend is reachable, else 503
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .readiness import ReadinessChecker, ReadinessState

router = APIRouter(tags=["Health"])


@router.get("/healthz")
async def healthz():
    return JSONResponse(content={"status": "ok"})


@router.get("/readyz")
async def readyz(request: Request):
    checker: ReadinessChecker = request.app.state.readiness
    result = await checker.check()
    return JSONResponse(
        status_code=200 if result.state == ReadinessState.READY else 503,
        content={
            "ready": result.state == ReadinessState.READY,
            "state": result.state.value,
            "message": result.message,
        },
    )

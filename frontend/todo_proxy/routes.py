"""
Todo Proxy API Routes

Pass-through endpoints to the todo backend:
- GET  /todos        - List todos
- POST /todos        - Create todo
- PUT  /todos/{id}   - Update todo

Bodies and status codes are forwarded unchanged in both directions.
"""

from fastapi import APIRouter, Request
from fastapi.responses import Response

from .client import BackendClient, FORWARDED_RESPONSE_HEADERS

router = APIRouter(prefix="/todos", tags=["Todos"])


def get_backend_client(request: Request) -> BackendClient:
    return request.app.state.backend_client


async def _forward(request: Request, path: str) -> Response:
    client = get_backend_client(request)
    upstream = await client.forward(
        request.method,
        path,
        content=await request.body(),
        headers=dict(request.headers),
        params=request.url.query,
    )
    # Headers go through as-is; media_type would rewrite text/* charsets
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers={
            k: v for k, v in upstream.headers.items()
            if k.lower() in FORWARDED_RESPONSE_HEADERS
        },
    )


@router.get("")
async def list_todos(request: Request):
    """List todos from the backend."""
    return await _forward(request, "/todos")


@router.post("")
async def create_todo(request: Request):
    """Create a todo on the backend."""
    return await _forward(request, "/todos")


@router.put("/{todo_id}")
async def update_todo(todo_id: str, request: Request):
    """Update a todo on the backend."""
    return await _forward(request, f"/todos/{todo_id}")

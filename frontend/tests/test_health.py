"""
健康检查测试

- /healthz 总是 200
- /readyz 仅在后端探测失败时返回 503
"""

import httpx
import pytest

from health.readiness import ReadinessChecker, ReadinessState
from todo_proxy.client import BackendClient
from conftest import BACKEND_URL, FakeBackend


class TestLiveness:

    @pytest.mark.asyncio
    async def test_healthz_always_ok(self, client, backend):
        """测试：后端挂掉时 /healthz 依然 200"""
        backend.error = httpx.ConnectError("down")

        response = await client.get("/healthz")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestReadiness:

    @pytest.mark.asyncio
    async def test_ready_when_backend_ok(self, client, backend):
        """测试：后端正常 → 200"""
        response = await client.get("/readyz")

        assert response.status_code == 200
        assert response.json()["state"] == "ready"
        assert backend.requests[0].url.path == "/todos"

    @pytest.mark.asyncio
    async def test_not_ready_when_backend_unreachable(self, client, backend):
        """测试：后端不可达 → 503"""
        backend.error = httpx.ConnectError("down")

        response = await client.get("/readyz")

        assert response.status_code == 503
        assert response.json()["ready"] is False

    @pytest.mark.asyncio
    async def test_not_ready_when_backend_errors(self, client, backend):
        """测试：后端返回 5xx → 503"""
        backend.status_code = 500

        response = await client.get("/readyz")

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_recovers_when_backend_returns(self, client, backend):
        """测试：后端恢复后重新变为 ready"""
        backend.error = httpx.ConnectError("down")
        assert (await client.get("/readyz")).status_code == 503

        backend.error = None
        assert (await client.get("/readyz")).status_code == 200


class TestReadinessChecker:

    @pytest.mark.asyncio
    async def test_state_transitions(self):
        """测试：状态机 NOT_READY → READY → NOT_READY"""
        backend = FakeBackend()
        client = BackendClient(BACKEND_URL, transport=httpx.MockTransport(backend))
        checker = ReadinessChecker(client, "/todos")

        assert checker.state == ReadinessState.NOT_READY
        await checker.check()
        assert checker.state == ReadinessState.READY

        backend.error = httpx.ReadTimeout("slow")
        result = await checker.check()
        assert checker.state == ReadinessState.NOT_READY
        assert result.status_code is None
        await client.close()

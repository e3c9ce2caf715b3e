"""
Frontend 测试配置文件

这个文件包含 pytest fixtures（测试夹具）。

关键概念：
- FakeClock：可控时钟，用来模拟 TTL 过期
- FakeFetcher：替代真实图片源，记录调用次数
- httpx.MockTransport：替代外部图片源和 todo 后端
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import httpx
import pytest

# 添加 frontend 目录到 Python 路径
frontend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(frontend_dir))

from core.config import Settings
from core.exceptions import UpstreamFetchError
from image_proxy.fetcher import FetchedImage
from main import create_app

IMAGE_URL = "https://images.example.com/rotating.jpg"
BACKEND_URL = "http://backend.test"
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"first-image" * 64
JPEG_BYTES_2 = b"\xff\xd8\xff\xe0" + b"second-image" * 64


# ============================================
# Test Doubles
# ============================================

class FakeClock:
    """可控时钟"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher:
    """
    替代 ImageFetcher。

    - calls：fetch 被调用的次数
    - gate：设置后，fetch 会等待 gate 被 set（用于并发测试）
    - fail：为 True 时抛出 UpstreamFetchError
    """

    def __init__(self, data: bytes = JPEG_BYTES, content_type: str = "image/jpeg"):
        self.data = data
        self.content_type = content_type
        self.calls = 0
        self.fail = False
        self.gate: Optional[asyncio.Event] = None

    async def fetch(self, url: str) -> FetchedImage:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise UpstreamFetchError("Image source unreachable", url=url)
        return FetchedImage(url=url, data=self.data, content_type=self.content_type)


class ImageSource:
    """
    httpx.MockTransport 的图片源处理器。

    每次请求会 sleep `delay` 秒，让并发请求有机会重叠。
    """

    def __init__(self, data: bytes = JPEG_BYTES, delay: float = 0.05):
        self.data = data
        self.delay = delay
        self.calls = 0
        self.status_code = 200
        self.error: Optional[Exception] = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return httpx.Response(
            self.status_code,
            content=self.data if self.status_code == 200 else b"error",
            headers={"content-type": "image/jpeg"},
        )


class FakeBackend:
    """
    httpx.MockTransport 的 todo 后端处理器。

    默认行为：回显请求（method、path、query、body）。
    """

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.error: Optional[Exception] = None
        self.body: Optional[bytes] = None
        self.headers: Optional[dict] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.body is not None:
            return httpx.Response(
                self.status_code,
                content=self.body,
                headers=self.headers or {"content-type": "application/json"},
            )
        return httpx.Response(
            self.status_code,
            json={
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query.decode(),
                "body": request.content.decode(),
            },
        )


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "image_cache"


@pytest.fixture
def image_source():
    return ImageSource()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings(cache_dir):
    return Settings(
        image_url=IMAGE_URL,
        cache_duration_ms=60_000,
        image_dir=str(cache_dir),
        backend_url=BACKEND_URL,
        backend_probe_path="/todos",
        fetch_timeout_seconds=2.0,
        backend_timeout_seconds=2.0,
    )


def build_app(settings, image_source, backend):
    return create_app(
        settings,
        image_transport=httpx.MockTransport(image_source),
        backend_transport=httpx.MockTransport(backend),
    )


@pytest.fixture
async def client(settings, image_source, backend):
    """
    指向应用的 httpx 客户端（通过 ASGITransport，不需要真实端口）。
    """
    app = build_app(settings, image_source, backend)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://frontend.test"
    ) as http_client:
        yield http_client

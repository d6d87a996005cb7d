"""checknumber 测试 fixtures -- 基于 httpx.MockTransport 的脚本化假服务"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from checknumber.config import DEFAULT_BASE_URL
from checknumber.transport import Transport

API_HOST = "api.checknumber.ai"
ARTIFACT_URL = "https://files.example-cdn.com/results/task-1.xlsx"
API_KEY = "test-key"


def task_payload(status: str = "queued", **overrides) -> dict:
    """构造服务端 Task JSON"""
    payload = {
        "task_id": "task-1",
        "user_id": "user-1",
        "status": status,
        "total": 3,
        "success": 0,
        "failure": 0,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return payload


class FakeService:
    """按顺序回放提交/状态/下载响应，并记录所有请求"""

    def __init__(self) -> None:
        self.submit_responses: list[httpx.Response] = []
        self.status_responses: list[httpx.Response] = []
        self.artifacts: dict[str, httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == API_HOST:
            if request.method == "POST":
                return self.submit_responses.pop(0)
            return self.status_responses.pop(0)
        return self.artifacts[str(request.url)]

    # -- 脚本构造 --

    def on_submit(self, status_code: int = 200, **payload) -> None:
        self.submit_responses.append(
            httpx.Response(status_code, json=task_payload(**payload))
        )

    def on_status(self, *statuses: str, **payload) -> None:
        for status in statuses:
            self.status_responses.append(
                httpx.Response(200, json=task_payload(status, **payload))
            )

    # -- 请求统计 --

    @property
    def submit_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == API_HOST and r.method == "POST"]

    @property
    def status_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == API_HOST and r.method == "GET"]

    @property
    def download_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host != API_HOST]


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()


@pytest.fixture
def sleep() -> AsyncMock:
    """替代 asyncio.sleep，记录轮询间隔"""
    return AsyncMock(return_value=None)


@pytest_asyncio.fixture
async def transport(fake_service: FakeService) -> AsyncGenerator[Transport, None]:
    """接入假服务的 Transport"""
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(fake_service.handler),
        follow_redirects=True,
    )
    async with http_client:
        yield Transport(API_KEY, client=http_client)


@pytest.fixture
def base_url() -> str:
    return DEFAULT_BASE_URL


@pytest.fixture
def artifact_url() -> str:
    return ARTIFACT_URL

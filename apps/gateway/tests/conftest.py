"""apps/gateway 测试配置 -- httpx AsyncClient + 手动装配 app.state

ASGITransport 不触发 lifespan，测试直接用 attach_services 注入
临时 SQLite 存储、静态用户目录与 LogNotifier。
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from taskdesk.core.models import ADMIN_GROUP, MEMBER_GROUP, Caller
from taskdesk.core.store import StoreGroup, create_sqlite_store_group
from taskdesk.provider import LogNotifier, StaticDirectory

JWT_SECRET = "gateway-test-secret-0123456789abcdef"


def token_for(caller: Caller, secret: str = JWT_SECRET) -> str:
    """签发与 Cognito ID token 同形的 HS256 token"""
    claims = {
        "sub": caller.user_id,
        "email": caller.email,
        "name": caller.name,
        "cognito:groups": caller.groups,
        "cognito:username": caller.username,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    group = await create_sqlite_store_group(str(tmp_path / "sqlite" / "gateway.db"))
    yield group
    await group.close()


@pytest.fixture
def directory() -> StaticDirectory:
    directory = StaticDirectory()
    directory.add_user("u-admin", "admin@example.com", "Ada Admin", groups=[ADMIN_GROUP])
    directory.add_user("u-a", "a@example.com", "Alice", groups=[MEMBER_GROUP])
    directory.add_user("u-b", "b@example.com", "Bob", groups=[MEMBER_GROUP])
    directory.add_user("u-off", "off@example.com", "Off", groups=[MEMBER_GROUP], enabled=False)
    directory.add_user("u-nomail", "", "No Mail", groups=[MEMBER_GROUP])
    return directory


@pytest.fixture
def notifier() -> LogNotifier:
    return LogNotifier()


@pytest_asyncio.fixture
async def app(store_group, directory, notifier, monkeypatch):
    """创建测试用 FastAPI app 实例"""
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
    monkeypatch.setenv("TASKDESK_LOG_FORMAT", "dev")

    from taskdesk.gateway.auth import AuthConfig
    from taskdesk.gateway.main import attach_services, create_app

    application = create_app()
    attach_services(
        application,
        store_group,
        directory,
        notifier,
        AuthConfig(jwt_secret=JWT_SECRET),
    )
    yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def headers_for() -> Callable[[Caller], dict[str, str]]:
    def _headers(caller: Caller) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(caller)}"}

    return _headers


@pytest.fixture
def admin_headers(admin, headers_for) -> dict[str, str]:
    return headers_for(admin)


@pytest.fixture
def alice_headers(member_a, headers_for) -> dict[str, str]:
    return headers_for(member_a)


@pytest.fixture
def bob_headers(member_b, headers_for) -> dict[str, str]:
    return headers_for(member_b)


@pytest.fixture
def create_task(client, admin_headers) -> Callable[..., Awaitable[dict[str, Any]]]:
    """以 Admin 身份创建任务，可选指派成员，返回任务 JSON"""

    async def _create(title: str = "Ship v1", members: list[str] | None = None, **fields):
        resp = await client.post("/tasks", json={"title": title, **fields}, headers=admin_headers)
        assert resp.status_code == 201, resp.text
        task = resp.json()["task"]
        if members:
            resp = await client.post(
                f"/tasks/{task['taskId']}/assign",
                json={"memberIds": members},
                headers=admin_headers,
            )
            assert resp.status_code == 200, resp.text
            task = resp.json()["task"]
        return task

    return _create

"""集成测试共享 fixture

通过环境变量 + lifespan 启动完整应用：SQLite 存储、JSON 种子文件的
静态用户目录、LogNotifier 与 HS256 token 校验。
"""

import json
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

JWT_SECRET = "integration-secret-0123456789abcdef"

SEED_USERS = [
    {
        "userId": "u-admin",
        "email": "admin@example.com",
        "name": "Ada Admin",
        "groups": ["Admins"],
    },
    {
        "userId": "u-admin2",
        "email": "admin2@example.com",
        "name": "Second Admin",
        "groups": ["Admins"],
    },
    {"userId": "u-a", "email": "a@example.com", "name": "Alice", "groups": ["Members"]},
    {"userId": "u-b", "email": "b@example.com", "name": "Bob", "groups": ["Members"]},
    {"userId": "u-c", "email": "c@example.com", "name": "Carol", "groups": ["Members"]},
]


@pytest.fixture
def integration_env(tmp_path: Path, monkeypatch) -> Path:
    """把应用配置指向临时目录"""
    seed = tmp_path / "users.json"
    seed.write_text(json.dumps(SEED_USERS), encoding="utf-8")

    monkeypatch.setenv("TASKDESK_STORE_BACKEND", "sqlite")
    monkeypatch.setenv("TASKDESK_DB_PATH", str(tmp_path / "sqlite" / "integration.db"))
    monkeypatch.setenv("TASKDESK_PROVIDER_MODE", "local")
    monkeypatch.setenv("TASKDESK_LOCAL_USERS_FILE", str(seed))
    monkeypatch.setenv("TASKDESK_NOTIFY_TRANSPORT", "log")
    monkeypatch.setenv("TASKDESK_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("TASKDESK_APP_NAME", "TaskDesk")
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
    monkeypatch.delenv("COGNITO_USER_POOL_ID", raising=False)
    return tmp_path


@pytest_asyncio.fixture
async def integration_app(integration_env):
    """集成测试用 FastAPI app，完整执行 lifespan"""
    from taskdesk.gateway.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth() -> Callable[[str], dict[str, str]]:
    """按种子用户 id 生成 Authorization 头"""
    users = {u["userId"]: u for u in SEED_USERS}

    def _headers(user_id: str) -> dict[str, str]:
        user = users[user_id]
        claims = {
            "sub": user_id,
            "email": user["email"],
            "name": user["name"],
            "cognito:groups": user["groups"],
            "cognito:username": user_id,
        }
        token = jwt.encode(claims, JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def notifier(integration_app):
    """lifespan 创建的 LogNotifier"""
    return integration_app.state.notifier

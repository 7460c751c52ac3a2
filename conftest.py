"""全局 pytest 配置 -- 临时 SQLite 数据库 + 常用请求者 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from taskdesk.core.models import ADMIN_GROUP, MEMBER_GROUP, Caller


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from taskdesk.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "conn.db"))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest.fixture
def admin() -> Caller:
    return Caller(
        user_id="u-admin",
        email="admin@example.com",
        name="Ada Admin",
        groups=[ADMIN_GROUP],
        username="u-admin",
    )


@pytest.fixture
def member_a() -> Caller:
    return Caller(
        user_id="u-a",
        email="a@example.com",
        name="Alice",
        groups=[MEMBER_GROUP],
        username="u-a",
    )


@pytest.fixture
def member_b() -> Caller:
    return Caller(
        user_id="u-b",
        email="b@example.com",
        name="Bob",
        groups=[MEMBER_GROUP],
        username="u-b",
    )

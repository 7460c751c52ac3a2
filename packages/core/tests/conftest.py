"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime

import pytest
import pytest_asyncio

from taskdesk.core.models import Task, TaskPriority, TaskStatus
from taskdesk.core.store import SqliteTaskStore


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构造测试用 Task，关键字参数覆盖默认值"""

    def _make(**overrides) -> Task:
        now = datetime.now(UTC)
        data = {
            "task_id": "01JTASK0000000000000000001",
            "title": "Ship v1",
            "status": TaskStatus.OPEN,
            "priority": TaskPriority.MEDIUM,
            "created_by": "u-admin",
            "created_by_email": "admin@example.com",
            "created_by_name": "Ada Admin",
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Task(**data)

    return _make


@pytest_asyncio.fixture
async def sqlite_store(db_conn) -> AsyncGenerator[SqliteTaskStore, None]:
    """基于临时数据库的 SqliteTaskStore"""
    yield SqliteTaskStore(db_conn)

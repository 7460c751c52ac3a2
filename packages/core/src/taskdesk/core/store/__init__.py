"""TaskDesk Core Store -- 任务持久化

提供工厂函数按配置创建 SQLite 或 DynamoDB 后端的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from ..config import get_aws_region, get_db_path, get_store_backend, get_tasks_table_name
from .dynamo_task_store import DynamoTaskStore
from .protocols import TaskStore
from .sqlite_init import init_db, verify_wal_mode
from .task_store import SqliteTaskStore


class StoreGroup:
    """Store 实例组

    SQLite 后端持有共享连接 conn；DynamoDB 后端 conn 为 None。
    """

    def __init__(
        self,
        task_store: TaskStore,
        backend: str,
        conn: aiosqlite.Connection | None = None,
    ) -> None:
        self.task_store = task_store
        self.backend = backend
        self.conn = conn

    async def close(self) -> None:
        await self.task_store.close()


async def create_sqlite_store_group(db_path: str) -> StoreGroup:
    """创建 SQLite Store 实例组（自动建库建表）

    Args:
        db_path: SQLite 数据库文件路径，":memory:" 为内存库
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(task_store=SqliteTaskStore(conn), backend="sqlite", conn=conn)


async def create_store_group(
    backend: str | None = None,
    db_path: str | None = None,
    table_name: str | None = None,
) -> StoreGroup:
    """按配置创建 Store 实例组

    Args:
        backend: "sqlite" / "dynamodb"，缺省读取 TASKDESK_STORE_BACKEND
        db_path: SQLite 路径，缺省读取 TASKDESK_DB_PATH
        table_name: DynamoDB 表名，缺省读取 TASKS_TABLE_NAME

    Returns:
        StoreGroup 实例
    """
    backend = backend or get_store_backend()
    if backend == "dynamodb":
        store = DynamoTaskStore(
            table_name=table_name or get_tasks_table_name(),
            region_name=get_aws_region(),
        )
        return StoreGroup(task_store=store, backend="dynamodb")
    return await create_sqlite_store_group(db_path or get_db_path())


__all__ = [
    "StoreGroup",
    "TaskStore",
    "create_store_group",
    "create_sqlite_store_group",
    "SqliteTaskStore",
    "DynamoTaskStore",
    "init_db",
    "verify_wal_mode",
]

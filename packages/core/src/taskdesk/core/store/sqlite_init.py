"""SQLite 数据库初始化

PRAGMA 配置 + tasks / task_assignees 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL；列表/JSON 类字段以 JSON 文本存储
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id             TEXT PRIMARY KEY,
    title               TEXT NOT NULL,
    description         TEXT NOT NULL DEFAULT '',
    status              TEXT NOT NULL DEFAULT 'OPEN',
    priority            TEXT NOT NULL DEFAULT 'MEDIUM',
    created_by          TEXT NOT NULL,
    created_by_email    TEXT NOT NULL DEFAULT '',
    created_by_name     TEXT NOT NULL DEFAULT '',
    due_date            TEXT,
    assigned_members    TEXT NOT NULL DEFAULT '[]',
    tags                TEXT NOT NULL DEFAULT '[]',
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL,
    last_status_update  TEXT,
    activity_log        TEXT NOT NULL DEFAULT '[]'
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status, updated_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_by ON tasks(created_by, updated_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_updated_at ON tasks(updated_at DESC);",
]

# 指派成员倒排表：按成员查询任务时避免全表扫描
_TASK_ASSIGNEES_DDL = """
CREATE TABLE IF NOT EXISTS task_assignees (
    task_id  TEXT NOT NULL,
    user_id  TEXT NOT NULL,

    PRIMARY KEY (task_id, user_id),
    FOREIGN KEY (task_id) REFERENCES tasks(task_id) ON DELETE CASCADE
);
"""

_TASK_ASSIGNEES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_task_assignees_user ON task_assignees(user_id);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_TASKS_DDL)
    await conn.execute(_TASK_ASSIGNEES_DDL)

    for idx_sql in _TASKS_INDEXES + _TASK_ASSIGNEES_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效（内存库始终为 memory）"""
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"

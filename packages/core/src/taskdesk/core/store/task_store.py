"""TaskStore SQLite 实现

本地开发与测试使用的后端。列表/JSON 类字段以 JSON 文本存储；
指派成员额外写入 task_assignees 倒排表，按成员查询走索引。
每个写方法独立提交，失败时回滚。
"""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import aiosqlite
from pydantic_core import to_jsonable_python

from ..exceptions import DependencyFailureError, TaskAlreadyExistsError, TaskNotFoundError
from ..models.enums import TaskStatus
from ..models.task import ActivityLogEntry, Task

# 以 JSON 文本存储的列
_JSON_COLUMNS = frozenset({"assigned_members", "tags", "last_status_update", "activity_log"})

# update_task_fields 允许写入的列
_UPDATABLE_COLUMNS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "assigned_members",
        "tags",
        "last_status_update",
    }
)

_COLUMNS = (
    "task_id",
    "title",
    "description",
    "status",
    "priority",
    "created_by",
    "created_by_email",
    "created_by_name",
    "due_date",
    "assigned_members",
    "tags",
    "created_at",
    "updated_at",
    "last_status_update",
    "activity_log",
)


def _ts(value: datetime) -> str:
    """统一的时间戳文本格式，保证字典序即时间序"""
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _to_column(name: str, value: Any) -> Any:
    """将 Task 字段值转换为列值"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _ts(value)
    if name in _JSON_COLUMNS:
        return json.dumps(to_jsonable_python(value, by_alias=True), ensure_ascii=False)
    return to_jsonable_python(value)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self._conn.commit()
        except aiosqlite.Error as exc:
            await self._conn.rollback()
            raise DependencyFailureError("task_store", exc) from exc
        except Exception:
            await self._conn.rollback()
            raise

    async def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[Task]:
        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise DependencyFailureError("task_store", exc) from exc
        return [self._row_to_task(row) for row in rows]

    async def put_task(self, task: Task) -> Task:
        """条件创建任务记录"""
        values = [
            _to_column(col, getattr(task, col)) for col in _COLUMNS
        ]
        placeholders = ", ".join("?" for _ in _COLUMNS)
        async with self._transaction():
            try:
                await self._conn.execute(
                    f"INSERT INTO tasks ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    values,
                )
            except aiosqlite.IntegrityError:
                raise TaskAlreadyExistsError(task.task_id) from None
            await self._replace_assignees(task.task_id, task.assigned_members)
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        tasks = await self._fetch("SELECT * FROM tasks WHERE task_id = ?", (task_id,))
        return tasks[0] if tasks else None

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> Task:
        """合并更新字段，updated_at 只增不减"""
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"不可更新的字段: {sorted(unknown)}")

        assignments = [f"{name} = ?" for name in fields]
        params = [_to_column(name, value) for name, value in fields.items()]
        assignments.append("updated_at = MAX(updated_at, ?)")
        params.extend([_ts(datetime.now(UTC)), task_id])

        async with self._transaction():
            cursor = await self._conn.execute(
                f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ?",
                params,
            )
            if cursor.rowcount == 0:
                raise TaskNotFoundError(task_id)
            if "assigned_members" in fields:
                await self._replace_assignees(task_id, fields["assigned_members"])

        task = await self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def append_activity_log_entry(
        self,
        task_id: str,
        entry: ActivityLogEntry,
    ) -> ActivityLogEntry:
        """在单条 UPDATE 内追加活动日志"""
        async with self._transaction():
            cursor = await self._conn.execute(
                """
                UPDATE tasks
                SET activity_log = json_insert(activity_log, '$[#]', json(?)),
                    updated_at = MAX(updated_at, ?)
                WHERE task_id = ?
                """,
                (entry.model_dump_json(by_alias=True), _ts(datetime.now(UTC)), task_id),
            )
            if cursor.rowcount == 0:
                raise TaskNotFoundError(task_id)
        return entry

    async def delete_task(self, task_id: str) -> None:
        """硬删除任务及其指派记录"""
        async with self._transaction():
            await self._conn.execute("DELETE FROM task_assignees WHERE task_id = ?", (task_id,))
            await self._conn.execute("DELETE FROM tasks WHERE task_id = ?", (task_id,))

    async def list_tasks_by_status(self, status: TaskStatus, limit: int) -> list[Task]:
        return await self._fetch(
            "SELECT * FROM tasks WHERE status = ? ORDER BY updated_at DESC LIMIT ?",
            (TaskStatus(status).value, limit),
        )

    async def list_tasks_for_assignee(self, user_id: str, limit: int) -> list[Task]:
        return await self._fetch(
            """
            SELECT t.* FROM tasks t
            JOIN task_assignees a ON a.task_id = t.task_id
            WHERE a.user_id = ?
            ORDER BY t.updated_at DESC LIMIT ?
            """,
            (user_id, limit),
        )

    async def list_all_tasks(self, limit: int) -> list[Task]:
        return await self._fetch(
            "SELECT * FROM tasks ORDER BY updated_at DESC LIMIT ?",
            (limit,),
        )

    async def list_tasks_created_by(self, user_id: str, limit: int) -> list[Task]:
        return await self._fetch(
            "SELECT * FROM tasks WHERE created_by = ? ORDER BY updated_at DESC LIMIT ?",
            (user_id, limit),
        )

    async def ping(self) -> None:
        try:
            await self._conn.execute("SELECT 1")
        except (aiosqlite.Error, ValueError) as exc:
            # 连接已关闭时 aiosqlite 抛 ValueError
            raise DependencyFailureError("task_store", exc) from exc

    async def close(self) -> None:
        await self._conn.close()

    async def _replace_assignees(self, task_id: str, members: list[str]) -> None:
        await self._conn.execute("DELETE FROM task_assignees WHERE task_id = ?", (task_id,))
        await self._conn.executemany(
            "INSERT OR IGNORE INTO task_assignees (task_id, user_id) VALUES (?, ?)",
            [(task_id, member) for member in members],
        )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        data = {col: row[col] for col in _COLUMNS}
        for col in _JSON_COLUMNS:
            if data[col] is not None:
                data[col] = json.loads(data[col])
        return Task.model_validate(data)

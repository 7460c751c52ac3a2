"""Store Protocol 接口定义

定义 TaskStore 的抽象接口，使用 Python Protocol 实现结构化子类型（duck typing）。
SQLite 与 DynamoDB 两个后端都满足该接口。
"""

from typing import Any, Protocol

from ..models.enums import TaskStatus
from ..models.task import ActivityLogEntry, Task


class TaskStore(Protocol):
    """Task 存储接口

    列表方法均按 updated_at 倒序返回，最多 limit 条。
    """

    async def put_task(self, task: Task) -> Task:
        """条件创建任务，task_id 已存在时抛 TaskAlreadyExistsError"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def update_task_fields(self, task_id: str, fields: dict[str, Any]) -> Task:
        """合并更新字段（Task 字段名），同时推进 updated_at

        Raises:
            TaskNotFoundError: 任务不存在
        """
        ...

    async def append_activity_log_entry(
        self,
        task_id: str,
        entry: ActivityLogEntry,
    ) -> ActivityLogEntry:
        """原子追加一条活动日志"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """硬删除任务（无 tombstone）"""
        ...

    async def list_tasks_by_status(self, status: TaskStatus, limit: int) -> list[Task]:
        """按状态查询"""
        ...

    async def list_tasks_for_assignee(self, user_id: str, limit: int) -> list[Task]:
        """查询指派给 user_id 的任务"""
        ...

    async def list_all_tasks(self, limit: int) -> list[Task]:
        """查询全部任务"""
        ...

    async def list_tasks_created_by(self, user_id: str, limit: int) -> list[Task]:
        """查询 user_id 创建的任务"""
        ...

    async def ping(self) -> None:
        """就绪探测，不可达时抛 DependencyFailureError"""
        ...

    async def close(self) -> None:
        """释放连接"""
        ...

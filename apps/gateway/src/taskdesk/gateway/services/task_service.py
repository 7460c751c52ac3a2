"""TaskService -- 任务创建/查询/更新/指派/状态流转业务逻辑

每个操作的固定流程：
1. 授权判定（policy.authorize），拒绝转换为 UnauthenticatedError / AccessDeniedError
2. 生命周期计算（lifecycle.plan_*），校验失败抛 InvalidRequestError
3. 写入 TaskStore
4. 需要时通知扇出（写入完成之后，失败不影响操作结果）

状态流转的检查顺序：401 -> 400 非法状态值 -> 404 -> 400 状态未变化 -> 403。
"""

from typing import Any

import structlog

from taskdesk.core.exceptions import (
    AccessDeniedError,
    TaskNotFoundError,
    UnauthenticatedError,
)
from taskdesk.core.lifecycle import (
    new_task,
    parse_draft,
    parse_status,
    plan_assignment,
    plan_field_update,
    plan_status_change,
)
from taskdesk.core.models import Caller, DenyReason, Operation, Task, TaskStatus
from taskdesk.core.policy import Decision, authorize, is_admin, visible_tasks
from taskdesk.core.store import TaskStore
from taskdesk.provider import DispatchSummary

from .notification_service import NotificationService

log = structlog.get_logger()


def enforce(decision: Decision) -> None:
    """把拒绝的 Decision 转换为异常"""
    if decision.allowed:
        return
    if decision.reason == DenyReason.UNAUTHORIZED:
        raise UnauthenticatedError(decision.message or "Unauthorized")
    raise AccessDeniedError(decision.message)


def _require_caller(caller: Caller | None) -> Caller:
    if caller is None or not caller.user_id:
        raise UnauthenticatedError()
    return caller


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        task_store: TaskStore,
        notifications: NotificationService,
        default_limit: int = 50,
    ) -> None:
        self._store = task_store
        self._notifications = notifications
        self._default_limit = default_limit

    async def _load(self, task_id: str) -> Task:
        task = await self._store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def create_task(self, caller: Caller | None, payload: dict[str, Any]) -> Task:
        """创建任务（仅 Admin）"""
        enforce(authorize(caller, Operation.CREATE))
        task = new_task(caller, parse_draft(payload))
        await self._store.put_task(task)
        log.info("task_created", task_id=task.task_id, user_id=caller.user_id)
        return task

    async def list_tasks(
        self,
        caller: Caller | None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[Task]:
        """列出 caller 可见的任务，按 updated_at 倒序

        Admin 可见全部；Member 先取自己被指派的任务，再按状态过滤。
        """
        enforce(authorize(caller, Operation.LIST))
        wanted = parse_status(status) if status else None
        limit = limit or self._default_limit

        if is_admin(caller):
            if wanted is not None:
                return await self._store.list_tasks_by_status(wanted, limit)
            return await self._store.list_all_tasks(limit)

        assigned = await self._store.list_tasks_for_assignee(caller.user_id, limit)
        return visible_tasks(caller, assigned, wanted)

    async def get_task(self, caller: Caller | None, task_id: str) -> Task:
        """读取单个任务（Admin 或已指派成员）"""
        _require_caller(caller)
        task = await self._load(task_id)
        enforce(authorize(caller, Operation.READ, task))
        return task

    async def update_task(
        self,
        caller: Caller | None,
        task_id: str,
        payload: dict[str, Any],
    ) -> Task:
        """按白名单更新字段（仅 Admin）"""
        enforce(authorize(caller, Operation.UPDATE))
        task = await self._load(task_id)
        plan = plan_field_update(task, payload, caller)

        updated = await self._store.update_task_fields(task_id, plan.fields)
        if plan.entry is not None:
            await self._store.append_activity_log_entry(task_id, plan.entry)
            updated = await self._load(task_id)
        log.info(
            "task_updated",
            task_id=task_id,
            user_id=caller.user_id,
            changed=sorted(plan.changes),
        )
        return updated

    async def delete_task(self, caller: Caller | None, task_id: str) -> None:
        """硬删除任务（仅 Admin）"""
        enforce(authorize(caller, Operation.DELETE))
        await self._load(task_id)
        await self._store.delete_task(task_id)
        log.info("task_deleted", task_id=task_id, user_id=caller.user_id)

    async def change_status(
        self,
        caller: Caller | None,
        task_id: str,
        raw_status: Any,
    ) -> tuple[Task, TaskStatus, DispatchSummary]:
        """状态流转并通知相关用户

        Returns:
            (更新后的任务, 变更前状态, 通知汇总)
        """
        caller = _require_caller(caller)
        new_status = parse_status(raw_status)
        task = await self._load(task_id)
        plan = plan_status_change(task, new_status, caller)
        enforce(authorize(caller, Operation.CHANGE_STATUS, task, new_status))

        await self._store.update_task_fields(task_id, plan.fields)
        await self._store.append_activity_log_entry(task_id, plan.entry)
        updated = await self._load(task_id)
        log.info(
            "task_status_changed",
            task_id=task_id,
            user_id=caller.user_id,
            from_status=plan.previous_status,
            to_status=new_status,
        )

        summary = await self._notifications.notify_status_change(
            task, plan.previous_status, new_status, caller
        )
        return updated, plan.previous_status, summary

    async def assign_members(
        self,
        caller: Caller | None,
        task_id: str,
        member_ids: Any,
    ) -> tuple[Task, list[str], DispatchSummary]:
        """指派成员（仅 Admin），只通知新增成员

        Returns:
            (更新后的任务, 新增成员, 通知汇总)
        """
        enforce(authorize(caller, Operation.ASSIGN))
        task = await self._load(task_id)
        plan = plan_assignment(task, member_ids, caller)

        await self._store.update_task_fields(task_id, {"assigned_members": plan.all_members})
        await self._store.append_activity_log_entry(task_id, plan.entry)
        updated = await self._load(task_id)
        log.info(
            "task_members_assigned",
            task_id=task_id,
            user_id=caller.user_id,
            new_members=plan.new_members,
        )

        summary = await self._notifications.notify_assignment(
            updated, plan.new_members, caller
        )
        return updated, plan.new_members, summary

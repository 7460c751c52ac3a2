"""授权判定 -- 谁可以对哪个任务执行哪种操作

纯函数：输入请求者、操作与任务，输出 Decision。
授权失败是预期的控制流结果，authorize() 从不因拒绝而抛异常。

规则按顺序匹配，首条命中即决定：
1. 无法解析请求者 -> UNAUTHORIZED
2. create / delete / update / assign / list_users -> 仅 Admins
3. read -> Admin 总是允许；Member 仅当在 assigned_members 中
4. list -> 允许（Member 的可见范围由 visible_tasks 收窄）
5. change_status -> 已关闭任务仅 Admin 可改；Member 必须已被指派；
   只有 Admin 可以流转到 CLOSED
"""

from collections.abc import Iterable

from pydantic import BaseModel, Field

from .models.enums import (
    ADMIN_GROUP,
    ADMIN_ONLY_STATES,
    DenyReason,
    Operation,
    TaskStatus,
)
from .models.task import Task
from .models.user import Caller

# 仅 Admin 可执行的操作及其拒绝文案
ADMIN_ONLY_OPERATIONS: dict[Operation, str] = {
    Operation.CREATE: "Only admins can create tasks",
    Operation.DELETE: "Only admins can delete tasks",
    Operation.UPDATE: "Only admins can update task details",
    Operation.ASSIGN: "Only admins can assign tasks",
    Operation.LIST_USERS: "Only admins can list users",
}


class Decision(BaseModel):
    """授权判定结果"""

    allowed: bool
    reason: DenyReason | None = Field(default=None, description="拒绝原因")
    message: str = Field(default="", description="拒绝说明")

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(allowed=False, reason=reason, message=message)


def is_in_role(groups: Iterable[str] | None, role_name: str) -> bool:
    """用户组中是否包含 role_name"""
    return role_name in (groups or ())


def is_admin(caller: Caller | None) -> bool:
    return caller is not None and is_in_role(caller.groups, ADMIN_GROUP)


def authorize(
    caller: Caller | None,
    operation: Operation,
    task: Task | None = None,
    new_status: TaskStatus | None = None,
) -> Decision:
    """判定 caller 能否对 task 执行 operation

    Args:
        caller: 请求者，None 表示未认证
        operation: 请求的操作
        task: 目标任务（read / change_status 必须提供）
        new_status: change_status 的目标状态

    Returns:
        Decision
    """
    if caller is None or not caller.user_id:
        return Decision.deny(DenyReason.UNAUTHORIZED, "Unauthorized")

    admin = is_in_role(caller.groups, ADMIN_GROUP)

    if operation in ADMIN_ONLY_OPERATIONS:
        if admin:
            return Decision.allow()
        return Decision.deny(DenyReason.FORBIDDEN, ADMIN_ONLY_OPERATIONS[operation])

    if operation == Operation.LIST:
        return Decision.allow()

    if task is None:
        raise ValueError(f"{operation} 判定需要提供 task")

    if operation == Operation.READ:
        if admin or task.is_assigned(caller.user_id):
            return Decision.allow()
        return Decision.deny(DenyReason.FORBIDDEN, "You are not assigned to this task")

    if operation == Operation.CHANGE_STATUS:
        return _authorize_status_change(caller, admin, task, new_status)

    raise ValueError(f"未知操作: {operation}")


def _authorize_status_change(
    caller: Caller,
    admin: bool,
    task: Task,
    new_status: TaskStatus | None,
) -> Decision:
    if admin:
        return Decision.allow()
    # 已关闭的任务对非 Admin 冻结
    if task.status in ADMIN_ONLY_STATES:
        return Decision.deny(
            DenyReason.FORBIDDEN, "Closed tasks can only be changed by admins"
        )
    if not task.is_assigned(caller.user_id):
        return Decision.deny(DenyReason.FORBIDDEN, "You are not assigned to this task")
    if new_status in ADMIN_ONLY_STATES:
        return Decision.deny(DenyReason.FORBIDDEN, "Only admins can close tasks")
    return Decision.allow()


def visible_tasks(
    caller: Caller,
    tasks: Iterable[Task],
    status: TaskStatus | None = None,
) -> list[Task]:
    """按 caller 的可见范围和可选状态筛选任务

    Admin 可见全部；Member 仅可见自己被指派的任务。
    """
    admin = is_in_role(caller.groups, ADMIN_GROUP)
    result = [t for t in tasks if admin or t.is_assigned(caller.user_id)]
    if status is not None:
        result = [t for t in result if t.status == status]
    return result

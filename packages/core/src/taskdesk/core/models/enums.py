"""枚举定义 -- 任务状态、优先级、角色、操作与活动日志类型

包含 TaskStatus 状态机、TaskPriority、UserRole、Operation、DenyReason、
ActivityAction 枚举，以及 validate_transition 状态流转校验。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机

    任意状态之间均可流转（同状态除外）；CLOSED 只能由 Admin 进入或离开，
    该限制由 policy 模块负责。
    """

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CLOSED = "CLOSED"


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class UserRole(StrEnum):
    """用户角色 -- 由目录服务的用户组推导，注册默认 MEMBER"""

    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class Operation(StrEnum):
    """授权判定所针对的操作"""

    CREATE = "create"
    READ = "read"
    LIST = "list"
    UPDATE = "update"
    ASSIGN = "assign"
    CHANGE_STATUS = "change_status"
    DELETE = "delete"
    LIST_USERS = "list_users"


class DenyReason(StrEnum):
    """授权拒绝原因"""

    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"


class ActivityAction(StrEnum):
    """活动日志动作类型"""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    MEMBERS_ASSIGNED = "MEMBERS_ASSIGNED"


# 目录服务中的用户组名称
ADMIN_GROUP = "Admins"
MEMBER_GROUP = "Members"

# 只有 Admin 可以进入或离开的状态
ADMIN_ONLY_STATES: set[TaskStatus] = {TaskStatus.CLOSED}


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    状态图不限制方向，唯一的非法流转是流转到当前状态本身。

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    return from_status != to_status


def role_for_groups(groups: list[str]) -> UserRole:
    """根据用户组推导角色，Admins 优先"""
    if ADMIN_GROUP in groups:
        return UserRole.ADMIN
    return UserRole.MEMBER

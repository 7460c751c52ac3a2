"""TaskDesk Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .draft import TaskDraft
from .enums import (
    ADMIN_GROUP,
    ADMIN_ONLY_STATES,
    MEMBER_GROUP,
    ActivityAction,
    DenyReason,
    Operation,
    TaskPriority,
    TaskStatus,
    UserRole,
    role_for_groups,
    validate_transition,
)
from .payloads import (
    FieldChange,
    MembersAssignedDetails,
    StatusChangedDetails,
    TaskCreatedDetails,
)
from .task import ActivityLogEntry, CamelModel, StatusUpdate, Task
from .user import Caller, User

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "UserRole",
    "Operation",
    "DenyReason",
    "ActivityAction",
    "ADMIN_GROUP",
    "MEMBER_GROUP",
    "ADMIN_ONLY_STATES",
    # 状态机
    "validate_transition",
    "role_for_groups",
    # Task
    "CamelModel",
    "Task",
    "TaskDraft",
    "StatusUpdate",
    "ActivityLogEntry",
    # User
    "Caller",
    "User",
    # Payloads
    "FieldChange",
    "TaskCreatedDetails",
    "StatusChangedDetails",
    "MembersAssignedDetails",
]

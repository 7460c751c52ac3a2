"""活动日志 details 子类型

所有 activity_log 条目的结构化 details 定义。
"""

from typing import Any

from pydantic import Field

from .enums import TaskPriority, TaskStatus
from .task import CamelModel


class FieldChange(CamelModel):
    """单字段变更 {from, to}

    TASK_UPDATED 的 details 即 {field: FieldChange} 聚合。
    """

    from_value: Any = Field(alias="from")
    to_value: Any = Field(alias="to")


class TaskCreatedDetails(CamelModel):
    """TASK_CREATED details"""

    title: str
    priority: TaskPriority


class StatusChangedDetails(CamelModel):
    """STATUS_CHANGED details"""

    from_status: TaskStatus = Field(alias="from")
    to_status: TaskStatus = Field(alias="to")


class MembersAssignedDetails(CamelModel):
    """MEMBERS_ASSIGNED details -- 仅包含本次新增成员"""

    members: list[str]

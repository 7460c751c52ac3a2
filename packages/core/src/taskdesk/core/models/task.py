"""Task Domain Model -- 任务记录、状态变更记录与活动日志

存储与传输统一使用 camelCase 属性名（taskId、assignedMembers ...），
Python 侧使用 snake_case 字段 + alias。
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import ActivityAction, TaskPriority, TaskStatus


class CamelModel(BaseModel):
    """camelCase 别名基类 -- 按字段名或别名均可构造"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict[str, Any]:
        """序列化为 JSON 兼容的 camelCase dict"""
        return self.model_dump(mode="json", by_alias=True)


class StatusUpdate(CamelModel):
    """最近一次状态变更记录"""

    from_status: TaskStatus = Field(alias="from", description="变更前状态")
    to_status: TaskStatus = Field(alias="to", description="变更后状态")
    updated_by: str = Field(description="操作者 user id")
    updated_by_name: str = Field(default="", description="操作者显示名")
    updated_at: datetime = Field(description="变更时间")


class ActivityLogEntry(CamelModel):
    """活动日志条目 -- append-only"""

    id: str = Field(description="条目 ID，ULID 格式")
    timestamp: datetime = Field(description="记录时间")
    action: ActivityAction = Field(description="动作类型")
    user_id: str = Field(description="操作者 user id")
    user_name: str = Field(default="", description="操作者显示名")
    details: dict[str, Any] = Field(default_factory=dict, description="结构化详情")


class Task(CamelModel):
    """Task 数据模型

    不变量：
    - task_id 创建后不可变
    - assigned_members 无重复
    - 每次状态变更追加一条 activity_log 并更新 last_status_update
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题，非空")
    description: str = Field(default="", description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.OPEN, description="当前状态")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    created_by: str = Field(description="创建者 user id")
    created_by_email: str = Field(default="", description="创建者邮箱")
    created_by_name: str = Field(default="", description="创建者显示名")
    due_date: date | None = Field(default=None, description="截止日期")
    assigned_members: list[str] = Field(default_factory=list, description="指派成员 user id")
    tags: list[str] = Field(default_factory=list, description="标签（有序）")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    last_status_update: StatusUpdate | None = Field(default=None, description="最近状态变更")
    activity_log: list[ActivityLogEntry] = Field(default_factory=list, description="活动日志")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("assigned_members")
    @classmethod
    def _dedupe_members(cls, value: list[str]) -> list[str]:
        # 保留首次出现顺序
        return list(dict.fromkeys(value))

    def is_assigned(self, user_id: str) -> bool:
        """user_id 是否在指派成员中"""
        return user_id in self.assigned_members

"""TaskDraft -- 创建任务的输入模型

未知字段忽略；标题的非空校验由 lifecycle.new_task 负责，
以便返回统一的 InvalidRequestError。
"""

from datetime import date
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from .enums import TaskPriority
from .task import CamelModel


class TaskDraft(CamelModel):
    """创建任务请求体"""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    priority: TaskPriority | None = Field(default=None, description="优先级，缺省 MEDIUM")
    due_date: date | None = Field(default=None, description="截止日期")
    tags: list[str] | None = Field(default=None, description="标签")

    @field_validator("due_date", mode="before")
    @classmethod
    def _blank_due_date(cls, value: Any) -> Any:
        # 表单未选日期时提交空串
        if isinstance(value, str) and not value.strip():
            return None
        return value

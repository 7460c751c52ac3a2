"""状态流转路由

PUT /tasks/{task_id}/status  body: {"status": "IN_PROGRESS"}
- 200: 流转成功，附带通知汇总
- 400: 非法状态值 / 状态未变化
- 403: 授权拒绝
- 404: 任务不存在
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from taskdesk.core.models import Caller

from ..deps import get_caller, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


@router.put("/tasks/{task_id}/status")
async def update_status(
    task_id: str,
    payload: dict[str, Any] | None = Body(default=None),
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    task, previous, summary = await service.change_status(
        caller, task_id, (payload or {}).get("status")
    )
    return {
        "message": "Task status updated successfully",
        "task": task.dump(),
        "previousStatus": previous.value,
        "notifications": summary.model_dump(),
    }

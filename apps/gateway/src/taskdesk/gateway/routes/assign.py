"""成员指派路由

POST /tasks/{task_id}/assign  body: {"memberIds": ["u-1", "u-2"]}
只通知本次新增的成员；全部已指派时返回 400。
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from taskdesk.core.models import Caller

from ..deps import get_caller, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


@router.post("/tasks/{task_id}/assign")
async def assign_members(
    task_id: str,
    payload: dict[str, Any] | None = Body(default=None),
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    task, new_members, summary = await service.assign_members(
        caller, task_id, (payload or {}).get("memberIds")
    )
    return {
        "message": f"Successfully assigned {len(new_members)} member(s) to task",
        "task": task.dump(),
        "newlyAssigned": new_members,
        "notifications": summary.model_dump(),
    }

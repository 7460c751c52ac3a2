"""任务路由

POST   /tasks           创建任务（Admin）
GET    /tasks           任务列表，支持 status / limit
GET    /tasks/{task_id} 任务详情
PUT    /tasks/{task_id} 字段更新（Admin）
DELETE /tasks/{task_id} 删除任务（Admin）
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from starlette.responses import JSONResponse

from taskdesk.core.config import MAX_LIST_LIMIT
from taskdesk.core.models import Caller

from ..deps import get_caller, get_task_service
from ..services.task_service import TaskService

router = APIRouter()


@router.post("/tasks")
async def create_task(
    payload: dict[str, Any] | None = Body(default=None),
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    task = await service.create_task(caller, payload or {})
    return JSONResponse(
        status_code=201,
        content={"message": "Task created successfully", "task": task.dump()},
    )


@router.get("/tasks")
async def list_tasks(
    status: str | None = Query(default=None, description="按状态筛选"),
    limit: int | None = Query(default=None, ge=1, le=MAX_LIST_LIMIT, description="最多返回条数"),
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    """查询任务列表，按 updatedAt 倒序"""
    tasks = await service.list_tasks(caller, status, limit)
    return {
        "tasks": [t.dump() for t in tasks],
        "count": len(tasks),
        "isAdmin": caller.is_admin,
    }


@router.get("/tasks/{task_id}")
async def get_task(
    task_id: str,
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(caller, task_id)
    return {"task": task.dump()}


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    payload: dict[str, Any] | None = Body(default=None),
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    task = await service.update_task(caller, task_id, payload or {})
    return {"message": "Task updated successfully", "task": task.dump()}


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    caller: Caller | None = Depends(get_caller),
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(caller, task_id)
    return {"message": "Task deleted successfully", "taskId": task_id}

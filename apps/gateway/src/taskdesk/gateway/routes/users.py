"""用户列表路由

GET /users?group=Admins|Members  仅 Admin，已禁用用户不返回
"""

from fastapi import APIRouter, Depends, Query

from taskdesk.core.models import Caller

from ..deps import get_caller, get_user_service
from ..services.user_service import UserService

router = APIRouter()


@router.get("/users")
async def list_users(
    group: str | None = Query(default=None, description="按用户组筛选"),
    caller: Caller | None = Depends(get_caller),
    service: UserService = Depends(get_user_service),
):
    users = await service.list_users(caller, group)
    return {"users": [u.dump() for u in users], "count": len(users)}

"""UserService -- 用户列表（仅 Admin）

- 指定 group：列出该组成员，role 由组名决定
- 未指定：列出全部用户，逐个查询所属组推导 role；
  单个用户的组查询失败时记录日志并按 MEMBER 处理
- 已禁用用户不返回
"""

import asyncio

import structlog

from taskdesk.core.models import Caller, Operation, User, UserRole, role_for_groups
from taskdesk.core.policy import authorize
from taskdesk.provider import UserDirectory

from .task_service import enforce

log = structlog.get_logger()


class UserService:
    def __init__(self, directory: UserDirectory) -> None:
        self._directory = directory

    async def list_users(self, caller: Caller | None, group: str | None = None) -> list[User]:
        enforce(authorize(caller, Operation.LIST_USERS))

        if group:
            role = role_for_groups([group])
            users = [
                u.model_copy(update={"role": role})
                for u in await self._directory.list_users_in_role(group)
            ]
        else:
            users = await self._directory.list_users()
            roles = await asyncio.gather(*(self._role_of(u) for u in users))
            users = [u.model_copy(update={"role": r}) for u, r in zip(users, roles, strict=True)]

        return [u for u in users if u.enabled]

    async def _role_of(self, user: User) -> UserRole:
        try:
            groups = await self._directory.get_user_groups(user.username or user.user_id)
        except Exception as exc:
            log.warning("user_groups_lookup_failed", user_id=user.user_id, error=str(exc))
            return UserRole.MEMBER
        return role_for_groups(groups)

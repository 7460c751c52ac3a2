"""StaticDirectory -- 内存用户目录

本地模式与测试使用。可从 JSON 种子文件加载：

    [
      {"userId": "u-admin", "email": "admin@example.com", "name": "Ada",
       "groups": ["Admins"]},
      {"userId": "u-1", "email": "m1@example.com", "groups": ["Members"],
       "enabled": false}
    ]
"""

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog
from ulid import ULID

from taskdesk.core.models import MEMBER_GROUP, User

log = structlog.get_logger()


class StaticDirectory:
    """UserDirectory 的内存实现"""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._groups: dict[str, list[str]] = {}
        self._passwords: dict[str, str] = {}

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "StaticDirectory":
        directory = cls()
        for record in records:
            directory.add_user(
                user_id=record["userId"],
                email=record.get("email", ""),
                name=record.get("name", ""),
                groups=record.get("groups", [MEMBER_GROUP]),
                enabled=record.get("enabled", True),
                username=record.get("username", ""),
            )
        return directory

    @classmethod
    def from_file(cls, path: str | Path) -> "StaticDirectory":
        """从 JSON 种子文件加载"""
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        directory = cls.from_records(records)
        log.info("static_directory_loaded", path=str(path), users=len(records))
        return directory

    def add_user(
        self,
        user_id: str,
        email: str,
        name: str = "",
        groups: Iterable[str] = (MEMBER_GROUP,),
        enabled: bool = True,
        username: str = "",
    ) -> User:
        """同步写入一个用户（种子数据 / 测试）"""
        user = User(
            user_id=user_id,
            username=username or user_id,
            email=email,
            name=name or email,
            enabled=enabled,
            status="CONFIRMED",
            created_at=datetime.now(UTC),
        )
        self._users[user_id] = user
        self._groups[user_id] = list(dict.fromkeys(groups))
        return user

    def _find(self, key: str) -> User | None:
        """按 user id / username / email 查找"""
        if key in self._users:
            return self._users[key]
        for user in self._users.values():
            if key in (user.username, user.email):
                return user
        return None

    async def get_user(self, user_id: str) -> User | None:
        return self._find(user_id)

    async def resolve_email(self, user_id: str) -> str | None:
        user = self._find(user_id)
        if user is None or not user.email:
            return None
        return user.email

    async def list_users(self) -> list[User]:
        return list(self._users.values())

    async def list_users_in_role(self, role_name: str) -> list[User]:
        return [
            user.model_copy(update={"group": role_name})
            for user_id, user in self._users.items()
            if role_name in self._groups.get(user_id, [])
        ]

    async def get_user_groups(self, username: str) -> list[str]:
        user = self._find(username)
        if user is None:
            return []
        return list(self._groups.get(user.user_id, []))

    async def add_user_to_group(self, username: str, group: str) -> None:
        user = self._find(username)
        if user is None:
            raise KeyError(f"用户不存在: {username}")
        groups = self._groups.setdefault(user.user_id, [])
        if group not in groups:
            groups.append(group)

    async def create_user(self, email: str, name: str) -> User:
        existing = self._find(email)
        if existing is not None:
            return existing
        return self.add_user(str(ULID()), email=email, name=name, groups=(), username=email)

    async def set_user_password(self, username: str, password: str) -> None:
        user = self._find(username)
        if user is None:
            raise KeyError(f"用户不存在: {username}")
        self._passwords[user.user_id] = password

"""CognitoDirectory -- 基于 Cognito User Pool 的用户目录

所有 cognito-idp 调用在线程中执行（boto3 为同步 SDK），
列表类接口跟随 PaginationToken / NextToken 取完全部分页。
"""

import asyncio
from functools import partial
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from taskdesk.core.models import User

from .exceptions import DirectoryUnavailableError

log = structlog.get_logger()

_USER_NOT_FOUND = "UserNotFoundException"
_USERNAME_EXISTS = "UsernameExistsException"


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def parse_attributes(attributes: list[dict[str, str]] | None) -> dict[str, str]:
    """[{Name, Value}, ...] -> {Name: Value}"""
    return {attr["Name"]: attr["Value"] for attr in attributes or []}


def to_user(
    record: dict[str, Any],
    attributes_key: str = "Attributes",
    group: str | None = None,
) -> User:
    """把 Cognito 用户记录转换为 User

    AdminGetUser 的属性字段名为 UserAttributes，其余接口为 Attributes。
    """
    attrs = parse_attributes(record.get(attributes_key))
    email = attrs.get("email", "")
    return User(
        user_id=attrs.get("sub") or record.get("Username", ""),
        username=record.get("Username", ""),
        email=email,
        name=attrs.get("name") or email,
        enabled=record.get("Enabled", True),
        status=record.get("UserStatus", ""),
        created_at=record.get("UserCreateDate"),
        group=group,
    )


class CognitoDirectory:
    """UserDirectory 的 Cognito 实现"""

    def __init__(
        self,
        user_pool_id: str,
        region_name: str | None = None,
        client: Any | None = None,
    ) -> None:
        """
        Args:
            user_pool_id: Cognito User Pool ID
            region_name: AWS 区域
            client: 预先构造的 cognito-idp client（测试注入）
        """
        self._pool_id = user_pool_id
        self._client = client or boto3.client("cognito-idp", region_name=region_name)

    @property
    def client(self) -> Any:
        return self._client

    async def _call(self, operation: str, *, passthrough: tuple[str, ...] = (), **kwargs: Any) -> dict:
        """在线程中调用 cognito-idp，passthrough 中的错误码原样抛出"""
        fn = partial(getattr(self._client, operation), UserPoolId=self._pool_id, **kwargs)
        try:
            return await asyncio.to_thread(fn)
        except ClientError as exc:
            if _error_code(exc) in passthrough:
                raise
            log.error("cognito_call_failed", operation=operation, error=str(exc))
            raise DirectoryUnavailableError(operation, exc) from exc
        except BotoCoreError as exc:
            log.error("cognito_call_failed", operation=operation, error=str(exc))
            raise DirectoryUnavailableError(operation, exc) from exc

    async def get_user(self, user_id: str) -> User | None:
        try:
            result = await self._call(
                "admin_get_user", passthrough=(_USER_NOT_FOUND,), Username=user_id
            )
        except ClientError:
            return None
        return to_user(result, attributes_key="UserAttributes")

    async def resolve_email(self, user_id: str) -> str | None:
        user = await self.get_user(user_id)
        if user is None or not user.email:
            return None
        return user.email

    async def list_users(self) -> list[User]:
        users: list[User] = []
        kwargs: dict[str, Any] = {}
        while True:
            result = await self._call("list_users", **kwargs)
            users.extend(to_user(u) for u in result.get("Users", []))
            token = result.get("PaginationToken")
            if not token:
                return users
            kwargs["PaginationToken"] = token

    async def list_users_in_role(self, role_name: str) -> list[User]:
        users: list[User] = []
        kwargs: dict[str, Any] = {"GroupName": role_name}
        while True:
            result = await self._call("list_users_in_group", **kwargs)
            users.extend(to_user(u, group=role_name) for u in result.get("Users", []))
            token = result.get("NextToken")
            if not token:
                return users
            kwargs["NextToken"] = token

    async def get_user_groups(self, username: str) -> list[str]:
        groups: list[str] = []
        kwargs: dict[str, Any] = {"Username": username}
        while True:
            result = await self._call("admin_list_groups_for_user", **kwargs)
            groups.extend(g["GroupName"] for g in result.get("Groups", []))
            token = result.get("NextToken")
            if not token:
                return groups
            kwargs["NextToken"] = token

    async def add_user_to_group(self, username: str, group: str) -> None:
        await self._call("admin_add_user_to_group", Username=username, GroupName=group)
        log.info("cognito_user_added_to_group", username=username, group=group)

    async def create_user(self, email: str, name: str) -> User:
        """以邮箱为用户名创建用户，不发送邀请邮件"""
        try:
            result = await self._call(
                "admin_create_user",
                passthrough=(_USERNAME_EXISTS,),
                Username=email,
                UserAttributes=[
                    {"Name": "email", "Value": email},
                    {"Name": "email_verified", "Value": "true"},
                    {"Name": "name", "Value": name},
                ],
                MessageAction="SUPPRESS",
            )
        except ClientError as exc:
            log.info("cognito_user_exists", username=email)
            existing = await self.get_user(email)
            if existing is None:
                raise DirectoryUnavailableError("admin_create_user", exc) from exc
            return existing
        return to_user(result["User"])

    async def set_user_password(self, username: str, password: str) -> None:
        await self._call(
            "admin_set_user_password",
            Username=username,
            Password=password,
            Permanent=True,
        )

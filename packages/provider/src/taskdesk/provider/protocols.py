"""外部协作者接口 -- UserDirectory / Notifier

Cognito 与静态目录、SES / SNS / 日志通道分别实现这两个 Protocol。
"""

from typing import Protocol

from taskdesk.core.models import User


class UserDirectory(Protocol):
    """用户目录：身份、组成员关系、启用状态"""

    async def get_user(self, user_id: str) -> User | None:
        """按 user id 查询，不存在返回 None"""
        ...

    async def resolve_email(self, user_id: str) -> str | None:
        """解析邮箱，不存在或无邮箱返回 None"""
        ...

    async def list_users(self) -> list[User]:
        """列出全部用户（role 未解析）"""
        ...

    async def list_users_in_role(self, role_name: str) -> list[User]:
        """列出某个组的全部用户"""
        ...

    async def get_user_groups(self, username: str) -> list[str]:
        """查询用户所属组"""
        ...

    async def add_user_to_group(self, username: str, group: str) -> None:
        """把用户加入组（已在组内时无副作用）"""
        ...

    async def create_user(self, email: str, name: str) -> User:
        """创建已验证邮箱的用户；已存在时返回现有用户"""
        ...

    async def set_user_password(self, username: str, password: str) -> None:
        """设置永久密码"""
        ...


class Notifier(Protocol):
    """邮件通知通道 -- 尽力而为，不抛异常"""

    async def send(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> bool:
        """发送一封邮件，返回是否投递成功"""
        ...

"""User / Caller 模型

User 由目录服务拥有，核心层只读；Caller 是单次请求的已认证请求者，
作为显式参数贯穿每一次核心调用。
"""

from datetime import datetime

from pydantic import Field

from .enums import ADMIN_GROUP, UserRole, role_for_groups
from .task import CamelModel


class Caller(CamelModel):
    """请求者身份（来自 token claims）"""

    user_id: str = Field(description="目录服务签发的 user id（sub）")
    email: str = Field(default="", description="邮箱")
    name: str = Field(default="", description="显示名，缺省回落到邮箱")
    groups: list[str] = Field(default_factory=list, description="所属用户组")
    username: str = Field(default="", description="目录服务用户名")

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.user_id

    @property
    def is_admin(self) -> bool:
        return ADMIN_GROUP in self.groups

    @property
    def role(self) -> UserRole:
        return role_for_groups(self.groups)


class User(CamelModel):
    """目录用户（只读引用数据）"""

    user_id: str
    username: str = Field(default="", description="目录服务用户名，用于组查询")
    email: str = ""
    name: str = ""
    role: UserRole = UserRole.MEMBER
    enabled: bool = True
    status: str = Field(default="", description="目录服务账户状态，如 CONFIRMED")
    created_at: datetime | None = None
    group: str | None = Field(default=None, description="按组查询时的组名")

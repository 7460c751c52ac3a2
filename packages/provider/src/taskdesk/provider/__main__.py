"""CLI 入口模块 -- python -m taskdesk.provider <command>

支持的命令：
  create-admin <email> <name>  创建用户并加入 Admins 组
  promote-admin <username>     把已有用户加入 Admins 组

create-admin 的密码从 TASKDESK_ADMIN_PASSWORD 读取，未设置时交互输入。
"""

import asyncio
import getpass
import os
import re
import sys

from taskdesk.core.models import ADMIN_GROUP

from . import create_user_directory, load_provider_config
from .exceptions import ProviderError
from .protocols import UserDirectory

_USAGE = """用法: python -m taskdesk.provider <command>
命令:
  create-admin <email> <name>  创建用户并加入 Admins 组
  promote-admin <username>     把已有用户加入 Admins 组"""


def validate_password(password: str) -> list[str]:
    """返回密码缺失的要素，空列表表示合格"""
    errors = []
    if len(password) < 8:
        errors.append("at least 8 characters")
    if not re.search(r"[A-Z]", password):
        errors.append("an uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("a lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("a number")
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append("a special character")
    return errors


def main() -> None:
    """CLI 主入口"""
    args = sys.argv[1:]
    if not args:
        print(_USAGE)
        sys.exit(1)

    command = args[0]
    directory = create_user_directory(load_provider_config())

    try:
        if command == "create-admin" and len(args) == 3:
            password = os.environ.get("TASKDESK_ADMIN_PASSWORD") or getpass.getpass("Password: ")
            problems = validate_password(password)
            if problems:
                print(f"密码必须包含: {', '.join(problems)}")
                sys.exit(1)
            asyncio.run(create_admin(directory, args[1], args[2], password))
        elif command == "promote-admin" and len(args) == 2:
            asyncio.run(promote_admin(directory, args[1]))
        else:
            print(_USAGE)
            sys.exit(1)
    except ProviderError as exc:
        print(f"失败: {exc}")
        sys.exit(1)


async def create_admin(
    directory: UserDirectory,
    email: str,
    name: str,
    password: str,
) -> None:
    """创建（或复用）用户，设置永久密码并加入 Admins"""
    user = await directory.create_user(email, name)
    print(f"用户: {user.email} ({user.user_id})")
    await directory.set_user_password(user.username or email, password)
    await directory.add_user_to_group(user.username or email, ADMIN_GROUP)
    print(f"已加入 {ADMIN_GROUP} 组")


async def promote_admin(directory: UserDirectory, username: str) -> None:
    await directory.add_user_to_group(username, ADMIN_GROUP)
    print(f"{username} 已加入 {ADMIN_GROUP} 组")


if __name__ == "__main__":
    main()

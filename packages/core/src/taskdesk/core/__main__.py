"""CLI 入口模块 -- python -m taskdesk.core <command>

支持的命令：
  init-db  创建 SQLite 数据库与表结构
"""

import asyncio
import sys

from .config import get_db_path


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskdesk.core <command>")
        print("命令:")
        print("  init-db  创建 SQLite 数据库与表结构")
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db")
        sys.exit(1)


async def init_database(db_path: str | None = None) -> None:
    """创建数据库文件并初始化表结构（幂等）"""
    from .store import create_sqlite_store_group

    db_path = db_path or get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_sqlite_store_group(db_path)
    await store_group.close()
    print("初始化完成")


if __name__ == "__main__":
    main()

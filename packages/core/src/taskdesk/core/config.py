"""配置常量模块 -- 可通过环境变量覆盖

包含存储后端选择、SQLite 路径、DynamoDB 表名与列表默认上限。
"""

import os
from pathlib import Path

STORE_BACKENDS = ("sqlite", "dynamodb")

# 列表接口的 limit 取值范围
MAX_LIST_LIMIT: int = 500


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKDESK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKDESK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskdesk.db"),
    )


def get_store_backend() -> str:
    """获取存储后端名称（sqlite / dynamodb），未知值回落到 sqlite"""
    backend = os.environ.get("TASKDESK_STORE_BACKEND", "sqlite").strip().lower()
    return backend if backend in STORE_BACKENDS else "sqlite"


def get_tasks_table_name() -> str:
    """获取 DynamoDB 任务表名"""
    return os.environ.get("TASKS_TABLE_NAME", "tasks")


def get_aws_region() -> str:
    return os.environ.get("AWS_REGION", "eu-central-1")


def get_default_list_limit() -> int:
    """列表默认条数，非法值回落到 50"""
    try:
        limit = int(os.environ.get("TASKDESK_DEFAULT_LIST_LIMIT", "50"))
    except ValueError:
        return 50
    return min(max(limit, 1), MAX_LIST_LIMIT)

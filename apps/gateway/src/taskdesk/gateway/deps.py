"""依赖注入模块 -- 通过 FastAPI Depends 注入服务与请求者

服务实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request

from taskdesk.core.models import Caller
from taskdesk.core.store import StoreGroup

from .services.task_service import TaskService
from .services.user_service import UserService


def get_store_group(request: Request) -> StoreGroup | None:
    """从 app.state 获取 StoreGroup 实例，lifespan 尚未装配时为 None"""
    return getattr(request.app.state, "store_group", None)


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def get_caller(request: Request) -> Caller | None:
    """解析请求者，无法解析时为 None（由授权判定返回 401）"""
    return await request.app.state.caller_resolver.resolve(request)

"""FastAPI 应用主文件

app 创建 + lifespan 管理：存储初始化/关闭 + 用户目录与通知通道初始化
+ 异常映射 + 路由注册。
"""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from taskdesk.core.config import get_default_list_limit
from taskdesk.core.exceptions import (
    AccessDeniedError,
    DependencyFailureError,
    InvalidRequestError,
    TaskAlreadyExistsError,
    TaskDeskError,
    TaskNotFoundError,
    UnauthenticatedError,
)
from taskdesk.core.store import StoreGroup, create_store_group
from taskdesk.provider import (
    Notifier,
    ProviderError,
    UserDirectory,
    create_notifier,
    create_user_directory,
    load_provider_config,
)

from .auth import AuthConfig, CallerResolver, load_auth_config
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import assign, health, status, tasks, users
from .services.notification_service import NotificationService
from .services.task_service import TaskService
from .services.user_service import UserService

log = structlog.get_logger()

# 异常 -> HTTP 状态码
_STATUS_CODES: dict[type[TaskDeskError], int] = {
    UnauthenticatedError: 401,
    AccessDeniedError: 403,
    InvalidRequestError: 400,
    TaskNotFoundError: 404,
    TaskAlreadyExistsError: 409,
    DependencyFailureError: 500,
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
) -> JSONResponse:
    """统一错误响应体 {"message", "code", "details"?}

    message 位于顶层，前端直接读取 data.message 展示给用户。
    """
    body: dict = {"message": message, "code": code}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


async def _handle_taskdesk_error(request: Request, exc: TaskDeskError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        log.error(
            "dependency_failure",
            code=exc.code,
            error=exc.message,
            original=repr(getattr(exc, "original_error", None)),
        )
    else:
        log.info("request_rejected", code=exc.code, status_code=status_code)
    return error_response(status_code, exc.code, exc.message, exc.details)


async def _handle_provider_error(request: Request, exc: ProviderError) -> JSONResponse:
    log.error("provider_failure", error=str(exc), recoverable=exc.recoverable)
    return error_response(500, DependencyFailureError.code, "User directory request failed")


async def _handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
    return error_response(400, "INVALID_REQUEST", "Invalid request", {"fields": fields})


async def _handle_http_error(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == 404 else f"HTTP_{exc.status_code}"
    response = error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error=str(exc))
    return error_response(500, "INTERNAL_ERROR", "Internal server error")


def attach_services(
    app: FastAPI,
    store_group: StoreGroup,
    directory: UserDirectory,
    notifier: Notifier,
    auth_config: AuthConfig,
    app_name: str = "Task Management System",
    default_limit: int = 50,
) -> None:
    """把存储与外部协作者装配成服务并挂到 app.state"""
    app.state.store_group = store_group
    app.state.user_directory = directory
    app.state.notifier = notifier

    notifications = NotificationService(directory, notifier, app_name)
    app.state.task_service = TaskService(
        store_group.task_store,
        notifications,
        default_limit=default_limit,
    )
    app.state.user_service = UserService(directory)
    app.state.caller_resolver = CallerResolver(auth_config)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化存储与外部协作者，关闭时清理连接"""
    store_group = await create_store_group()
    provider_config = load_provider_config()
    app.state.provider_config = provider_config

    attach_services(
        app,
        store_group,
        create_user_directory(provider_config),
        create_notifier(provider_config),
        load_auth_config(),
        app_name=provider_config.app_name,
        default_limit=get_default_list_limit(),
    )

    log.info(
        "gateway_initialized",
        store_backend=store_group.backend,
        provider_mode=provider_config.provider_mode,
        notify_transport=provider_config.notify_transport,
    )

    yield

    if getattr(app.state, "store_group", None):
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskDesk Gateway",
        version="0.1.0",
        description="任务管理 API：任务 CRUD、指派、状态流转与通知",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging，CORS 最外层）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[os.environ.get("CORS_ALLOWED_ORIGIN", "*")],
        allow_methods=["OPTIONS", "POST", "GET", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(TaskDeskError, _handle_taskdesk_error)
    app.add_exception_handler(ProviderError, _handle_provider_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(Exception, _handle_unexpected)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(status.router, tags=["tasks"])
    app.include_router(assign.router, tags=["tasks"])
    app.include_router(users.router, tags=["users"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()

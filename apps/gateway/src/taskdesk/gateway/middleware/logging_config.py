"""日志配置 -- structlog + 标准库 logging 统一输出

本地开发默认 dev 渲染；在 Lambda 上默认 JSON，每条日志一行，
由 CloudWatch 按行收集。每条日志附带服务名与 Lambda 函数信息，
凭据类字段在渲染前打码。

Logfire APM 由 LOGFIRE_SEND_TO_LOGFIRE 控制，未启用或初始化失败时仅输出本地日志。
"""

import logging
import os
from collections.abc import MutableMapping
from typing import Any

import structlog
from fastapi import FastAPI

SERVICE_NAME = "taskdesk-gateway"

# 日志中出现这些键时替换为掩码
_SECRET_KEYS = frozenset({"authorization", "password", "token", "jwt", "temporary_password"})
_MASK = "***"

# boto 的 DEBUG 日志会打印完整请求体
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "aiosqlite")


def _default_format() -> str:
    return "json" if os.environ.get("AWS_LAMBDA_FUNCTION_NAME") else "dev"


def add_service_context(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """附加服务名；在 Lambda 中再附加函数名与版本"""
    event_dict.setdefault("service", SERVICE_NAME)
    function_name = os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
    if function_name:
        event_dict.setdefault("function", function_name)
        event_dict.setdefault("function_version", os.environ.get("AWS_LAMBDA_FUNCTION_VERSION"))
    return event_dict


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """凭据类字段打码"""
    for key in event_dict:
        if key.lower() in _SECRET_KEYS:
            event_dict[key] = _MASK
    return event_dict


def setup_logging() -> None:
    """初始化 structlog 与根 logger

    TASKDESK_LOG_FORMAT: "json" / "dev"，Lambda 中默认 json
    TASKDESK_LOG_LEVEL: 标准库日志级别名，无法识别时为 INFO
    """
    log_format = os.environ.get("TASKDESK_LOG_FORMAT", _default_format())
    log_level = os.environ.get("TASKDESK_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_context,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        # 异常以结构化 traceback 输出，保持单行
        renderers: list[structlog.types.Processor] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_logfire(app: FastAPI) -> bool:
    """按需为 app 启用 Logfire，返回是否启用成功

    LOGFIRE_SEND_TO_LOGFIRE="true" 时启用（需要 LOGFIRE_TOKEN）。
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name=SERVICE_NAME)
        logfire.instrument_fastapi(app)
    except Exception as exc:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error=str(exc),
            message="Logfire 初始化失败，降级为纯本地日志",
        )
        return False
    return True

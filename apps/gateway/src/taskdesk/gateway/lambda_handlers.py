"""Lambda Handlers -- AWS Lambda 入口

1. api_handler: API Gateway HTTP 请求，经 Mangum 转交 FastAPI app
2. post_confirmation_handler: Cognito PostConfirmation 触发器，
   把刚完成邮箱验证的用户加入 Members 组；任何失败都不能阻断注册
"""

import asyncio
from typing import Any

import structlog
from mangum import Mangum

from taskdesk.core.models import MEMBER_GROUP
from taskdesk.provider import CognitoDirectory, load_provider_config

from .main import app

log = structlog.get_logger()

# 每次调用都执行 lifespan：存储与目录客户端随调用创建
_asgi_handler = Mangum(app, lifespan="auto")

_CONFIRM_SIGN_UP = "PostConfirmation_ConfirmSignUp"


def api_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """API Gateway -> FastAPI"""
    return _asgi_handler(event, context)


def post_confirmation_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Cognito PostConfirmation 触发器，总是原样返回 event"""
    if event.get("triggerSource") != _CONFIRM_SIGN_UP:
        log.info("post_confirmation_skipped", trigger=event.get("triggerSource"))
        return event

    username = event.get("userName", "")
    pool_id = event.get("userPoolId", "")
    try:
        directory = CognitoDirectory(pool_id, region_name=load_provider_config().aws_region)
        asyncio.run(directory.add_user_to_group(username, MEMBER_GROUP))
        log.info("post_confirmation_member_added", username=username)
    except Exception as exc:
        # 组分配失败不能阻断用户注册
        log.error("post_confirmation_failed", username=username, error=str(exc))
    return event

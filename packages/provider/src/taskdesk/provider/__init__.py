"""TaskDesk Provider -- 外部协作者抽象层

用户目录（Cognito / 静态）与通知通道（SES / SNS / 日志）的公开接口导出，
以及按 ProviderConfig 选择实现的工厂函数。
"""

import structlog

from .cognito_directory import CognitoDirectory

# 配置
from .config import ProviderConfig, load_provider_config

# 异常
from .exceptions import DirectoryUnavailableError, ProviderConfigError, ProviderError
from .log_notifier import LogNotifier
from .models import DispatchSummary, NotificationMessage
from .protocols import Notifier, UserDirectory
from .ses_notifier import SesNotifier
from .sns_notifier import SnsNotifier
from .static_directory import StaticDirectory
from .templates import render_assignment_email, render_status_email

log = structlog.get_logger()


def create_user_directory(config: ProviderConfig) -> UserDirectory:
    """按配置创建用户目录

    Raises:
        ProviderConfigError: aws 模式缺少 COGNITO_USER_POOL_ID
    """
    if config.provider_mode == "aws":
        if not config.user_pool_id:
            raise ProviderConfigError("aws 模式需要设置 COGNITO_USER_POOL_ID")
        return CognitoDirectory(config.user_pool_id, region_name=config.aws_region)

    if config.local_users_file:
        return StaticDirectory.from_file(config.local_users_file)
    log.warning("static_directory_empty", hint="设置 TASKDESK_LOCAL_USERS_FILE 加载种子用户")
    return StaticDirectory()


def create_notifier(config: ProviderConfig) -> Notifier:
    """按配置创建通知通道，缺少必需参数时降级为 LogNotifier"""
    if config.notify_transport == "ses":
        if config.ses_from_email:
            return SesNotifier(config.ses_from_email, region_name=config.aws_region)
        log.warning("notifier_degraded", transport="ses", reason="SES_FROM_EMAIL 未设置")
    elif config.notify_transport == "sns":
        if config.sns_topic_arn:
            return SnsNotifier(config.sns_topic_arn, region_name=config.aws_region)
        log.warning("notifier_degraded", transport="sns", reason="SNS_TOPIC_ARN 未设置")
    return LogNotifier()


__all__ = [
    "UserDirectory",
    "Notifier",
    "CognitoDirectory",
    "StaticDirectory",
    "SesNotifier",
    "SnsNotifier",
    "LogNotifier",
    "NotificationMessage",
    "DispatchSummary",
    "render_assignment_email",
    "render_status_email",
    "ProviderConfig",
    "load_provider_config",
    "create_user_directory",
    "create_notifier",
    "ProviderError",
    "DirectoryUnavailableError",
    "ProviderConfigError",
]

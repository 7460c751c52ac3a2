"""ProviderConfig -- Provider 配置加载

从环境变量加载用户目录与通知通道配置，不硬编码 pool id / 发件人。
"""

import os
from typing import Literal, get_args

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

ProviderMode = Literal["aws", "local"]
NotifyTransport = Literal["ses", "sns", "log"]


class ProviderConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        TASKDESK_PROVIDER_MODE: 用户目录模式（aws / local）
        AWS_REGION: AWS 区域（默认 eu-central-1）
        COGNITO_USER_POOL_ID: Cognito User Pool ID
        TASKDESK_NOTIFY_TRANSPORT: 通知通道（ses / sns / log）
        SES_FROM_EMAIL: SES 发件地址
        SNS_TOPIC_ARN: SNS 主题 ARN
        TASKDESK_LOCAL_USERS_FILE: 本地目录 JSON 种子文件
        TASKDESK_APP_NAME: 邮件署名中的系统名称
    """

    provider_mode: ProviderMode = Field(
        default="local",
        description="用户目录模式：aws（Cognito）/ local（静态目录）",
    )
    aws_region: str = Field(default="eu-central-1", description="AWS 区域")
    user_pool_id: str = Field(default="", description="Cognito User Pool ID")
    notify_transport: NotifyTransport = Field(
        default="log",
        description="通知通道：ses / sns / log",
    )
    ses_from_email: str = Field(default="", description="SES 发件地址")
    sns_topic_arn: str = Field(default="", description="SNS 主题 ARN")
    local_users_file: str = Field(default="", description="静态目录 JSON 种子文件路径")
    app_name: str = Field(default="Task Management System", description="系统名称")


def _choice(env_var: str, allowed: tuple[str, ...], fallback: str) -> str | None:
    """读取枚举型环境变量，非法值记录警告并回落到默认值"""
    val = os.environ.get(env_var)
    if not val:
        return None
    val = val.strip().lower()
    if val in allowed:
        return val
    log.warning(
        "invalid_provider_config",
        env_var=env_var,
        value=val,
        fallback=fallback,
    )
    return None


def load_provider_config() -> ProviderConfig:
    """从环境变量加载 Provider 配置

    Returns:
        ProviderConfig 实例
    """
    kwargs: dict = {}

    if val := _choice("TASKDESK_PROVIDER_MODE", get_args(ProviderMode), "local"):
        kwargs["provider_mode"] = val

    if val := _choice("TASKDESK_NOTIFY_TRANSPORT", get_args(NotifyTransport), "log"):
        kwargs["notify_transport"] = val

    if val := os.environ.get("AWS_REGION"):
        kwargs["aws_region"] = val

    if val := os.environ.get("COGNITO_USER_POOL_ID"):
        kwargs["user_pool_id"] = val

    if val := os.environ.get("SES_FROM_EMAIL"):
        kwargs["ses_from_email"] = val

    if val := os.environ.get("SNS_TOPIC_ARN"):
        kwargs["sns_topic_arn"] = val

    if val := os.environ.get("TASKDESK_LOCAL_USERS_FILE"):
        kwargs["local_users_file"] = val

    if val := os.environ.get("TASKDESK_APP_NAME"):
        kwargs["app_name"] = val

    return ProviderConfig(**kwargs)

"""SnsNotifier -- 通过 SNS 主题发布通知

邮件订阅按 email 消息属性做订阅过滤，收件地址放在 MessageAttributes 中。
SNS 邮件只支持纯文本，body_html 被忽略。
"""

import asyncio
import json
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

log = structlog.get_logger()

# SNS Subject 上限 100 字符
_SUBJECT_MAX = 100


class SnsNotifier:
    """Notifier 的 SNS 实现"""

    def __init__(
        self,
        topic_arn: str,
        region_name: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._topic_arn = topic_arn
        self._client = client or boto3.client("sns", region_name=region_name)

    @property
    def client(self) -> Any:
        return self._client

    def _publish_sync(self, to_email: str, subject: str, body_text: str) -> None:
        self._client.publish(
            TopicArn=self._topic_arn,
            Message=json.dumps({"default": body_text, "email": body_text}),
            Subject=subject[:_SUBJECT_MAX],
            MessageStructure="json",
            MessageAttributes={
                "email": {"DataType": "String", "StringValue": to_email},
            },
        )

    async def send(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> bool:
        try:
            await asyncio.to_thread(self._publish_sync, to_email, subject, body_text)
        except (ClientError, BotoCoreError) as exc:
            log.warning("sns_publish_failed", to=to_email, subject=subject, error=str(exc))
            return False
        log.info("sns_notification_published", to=to_email, subject=subject)
        return True

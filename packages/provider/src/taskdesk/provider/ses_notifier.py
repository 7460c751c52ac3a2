"""SesNotifier -- 通过 SES SendEmail 投递通知"""

import asyncio
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

log = structlog.get_logger()


class SesNotifier:
    """Notifier 的 SES 实现，投递失败记录日志并返回 False"""

    def __init__(
        self,
        from_email: str,
        region_name: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._from_email = from_email
        self._client = client or boto3.client("ses", region_name=region_name)

    @property
    def client(self) -> Any:
        return self._client

    def _send_sync(self, to_email: str, subject: str, body_html: str, body_text: str) -> None:
        self._client.send_email(
            Source=self._from_email,
            Destination={"ToAddresses": [to_email]},
            Message={
                "Subject": {"Data": subject},
                "Body": {
                    "Html": {"Data": body_html},
                    "Text": {"Data": body_text},
                },
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
            await asyncio.to_thread(self._send_sync, to_email, subject, body_html, body_text)
        except (ClientError, BotoCoreError) as exc:
            log.warning("ses_send_failed", to=to_email, subject=subject, error=str(exc))
            return False
        log.info("ses_email_sent", to=to_email, subject=subject)
        return True

"""LogNotifier -- 只记录日志的通知通道

本地模式缺省通道，投递内容保存在 outbox 中便于检查。
"""

import structlog

from .models import NotificationMessage

log = structlog.get_logger()


class LogNotifier:
    """Notifier 的日志实现，总是投递成功"""

    def __init__(self) -> None:
        self.outbox: list[NotificationMessage] = []

    async def send(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> bool:
        self.outbox.append(
            NotificationMessage(
                to_email=to_email,
                subject=subject,
                body_html=body_html,
                body_text=body_text,
            )
        )
        log.info("notification_logged", to=to_email, subject=subject)
        return True

    def recipients(self) -> list[str]:
        return [m.to_email for m in self.outbox]

"""NotificationService -- 任务事件的邮件扇出

收件人集合由 taskdesk.core.fanout 计算；本服务负责：
1. 并发把 user id 解析为邮箱（解析失败/无邮箱的收件人跳过）
2. 渲染模板，每个收件人一封（渲染失败计入 failed）
3. 并发投递，等待全部结果，单个失败不影响其他收件人

任何异常都不会传出，结果以 DispatchSummary 汇总返回。
"""

import asyncio
from collections.abc import Callable

import structlog

from taskdesk.core.fanout import status_change_recipients
from taskdesk.core.models import ADMIN_GROUP, Caller, Task, TaskStatus
from taskdesk.provider import (
    DispatchSummary,
    NotificationMessage,
    Notifier,
    UserDirectory,
    render_assignment_email,
    render_status_email,
)

log = structlog.get_logger()


class NotificationService:
    """通知扇出服务"""

    def __init__(
        self,
        directory: UserDirectory,
        notifier: Notifier,
        app_name: str = "Task Management System",
    ) -> None:
        self._directory = directory
        self._notifier = notifier
        self._app_name = app_name

    async def notify_assignment(
        self,
        task: Task,
        new_member_ids: list[str],
        actor: Caller,
    ) -> DispatchSummary:
        """通知本次新增的指派成员"""
        return await self._dispatch(
            "task_assigned",
            task.task_id,
            new_member_ids,
            lambda email: render_assignment_email(
                email, task, actor.display_name, self._app_name
            ),
        )

    async def notify_status_change(
        self,
        task: Task,
        old_status: TaskStatus,
        new_status: TaskStatus,
        actor: Caller,
    ) -> DispatchSummary:
        """通知 Admins ∪ 指派成员 ∪ 创建者（不含操作者）"""
        recipients = status_change_recipients(task, await self._admin_ids(), actor.user_id)
        return await self._dispatch(
            "task_status_changed",
            task.task_id,
            recipients,
            lambda email: render_status_email(
                email, task, old_status, new_status, actor.display_name, self._app_name
            ),
        )

    async def _admin_ids(self) -> list[str]:
        """Admins 组成员；目录不可用时记录警告并按空集合处理"""
        try:
            admins = await self._directory.list_users_in_role(ADMIN_GROUP)
        except Exception as exc:
            log.warning("admin_lookup_failed", error=str(exc))
            return []
        return [u.user_id for u in admins]

    async def _resolve_email(self, user_id: str) -> str | None:
        try:
            return await self._directory.resolve_email(user_id)
        except Exception as exc:
            log.warning("recipient_lookup_failed", user_id=user_id, error=str(exc))
            return None

    async def _dispatch(
        self,
        kind: str,
        task_id: str,
        recipient_ids: list[str],
        render: Callable[[str], NotificationMessage],
    ) -> DispatchSummary:
        summary = DispatchSummary()
        if not recipient_ids:
            return summary

        emails = await asyncio.gather(*(self._resolve_email(uid) for uid in recipient_ids))
        messages = []
        for user_id, email in zip(recipient_ids, emails, strict=True):
            if not email:
                log.info("recipient_skipped", user_id=user_id, task_id=task_id)
                summary.skipped += 1
                continue
            try:
                messages.append(render(email))
            except Exception as exc:
                log.warning(
                    "notification_render_failed", user_id=user_id, task_id=task_id, error=str(exc)
                )
                summary.failed += 1

        results = await asyncio.gather(
            *(
                self._notifier.send(m.to_email, m.subject, m.body_html, m.body_text)
                for m in messages
            ),
            return_exceptions=True,
        )
        for message, result in zip(messages, results, strict=True):
            if result is True:
                summary.sent += 1
            else:
                summary.failed += 1
                if isinstance(result, BaseException):
                    log.warning(
                        "notification_failed",
                        to=message.to_email,
                        task_id=task_id,
                        error=str(result),
                    )

        log.info(
            "notifications_dispatched",
            kind=kind,
            task_id=task_id,
            sent=summary.sent,
            failed=summary.failed,
            skipped=summary.skipped,
        )
        return summary

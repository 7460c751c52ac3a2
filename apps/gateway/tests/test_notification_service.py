"""NotificationService 单元测试 -- 收件人解析、投递汇总与故障隔离"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from taskdesk.core.models import Task, TaskStatus
from taskdesk.gateway.services import notification_service
from taskdesk.gateway.services.notification_service import NotificationService
from taskdesk.provider import DirectoryUnavailableError, LogNotifier


@pytest.fixture
def task() -> Task:
    now = datetime.now(UTC)
    return Task(
        task_id="t-1",
        title="Ship v1",
        created_by="u-admin",
        assigned_members=["u-a", "u-b"],
        created_at=now,
        updated_at=now,
    )


class TestAssignment:
    async def test_sends_to_new_members(self, directory, notifier, task, admin):
        service = NotificationService(directory, notifier, "TaskDesk")
        summary = await service.notify_assignment(task, ["u-b"], admin)

        assert summary.model_dump() == {"sent": 1, "failed": 0, "skipped": 0}
        [message] = notifier.outbox
        assert message.to_email == "b@example.com"
        assert "TaskDesk" in message.body_text

    async def test_no_recipients(self, directory, notifier, task, admin):
        service = NotificationService(directory, notifier)
        summary = await service.notify_assignment(task, [], admin)
        assert summary.total == 0


class TestStatusChange:
    async def test_recipients(self, directory, notifier, task, member_a):
        service = NotificationService(directory, notifier)
        summary = await service.notify_status_change(
            task, TaskStatus.OPEN, TaskStatus.IN_PROGRESS, member_a
        )
        assert summary.sent == 2
        assert notifier.recipients() == ["admin@example.com", "b@example.com"]
        assert "Updated By: Alice" in notifier.outbox[0].body_text

    async def test_admin_lookup_failure_still_notifies_others(
        self, directory, notifier, task, member_a, monkeypatch
    ):
        monkeypatch.setattr(
            directory,
            "list_users_in_role",
            AsyncMock(side_effect=DirectoryUnavailableError("list_users_in_group", OSError())),
        )
        service = NotificationService(directory, notifier)
        summary = await service.notify_status_change(
            task, TaskStatus.OPEN, TaskStatus.COMPLETED, member_a
        )
        # 创建者 u-admin 与成员 u-b
        assert summary.sent == 2

    async def test_email_lookup_failure_counts_as_skipped(
        self, directory, notifier, task, admin, monkeypatch
    ):
        original = directory.resolve_email

        async def flaky(user_id: str):
            if user_id == "u-a":
                raise DirectoryUnavailableError("admin_get_user", OSError())
            return await original(user_id)

        monkeypatch.setattr(directory, "resolve_email", flaky)
        service = NotificationService(directory, notifier)
        summary = await service.notify_status_change(
            task, TaskStatus.OPEN, TaskStatus.CLOSED, admin
        )
        assert summary.model_dump() == {"sent": 1, "failed": 0, "skipped": 1}
        assert notifier.recipients() == ["b@example.com"]


class TestDeliveryFailures:
    async def test_false_and_exceptions_counted_as_failed(self, directory, task, admin):
        notifier = LogNotifier()
        results = iter([False, RuntimeError("throttled")])

        async def send(to_email, subject, body_html, body_text):
            result = next(results)
            if isinstance(result, Exception):
                raise result
            return result

        notifier.send = send
        service = NotificationService(directory, notifier)
        summary = await service.notify_assignment(task, ["u-a", "u-b"], admin)
        assert summary.model_dump() == {"sent": 0, "failed": 2, "skipped": 0}

    async def test_partial_failure_isolated(self, directory, task, admin):
        notifier = AsyncMock()
        notifier.send.side_effect = [True, RuntimeError("down"), True]
        service = NotificationService(directory, notifier)

        summary = await service.notify_assignment(task, ["u-a", "u-b", "u-admin"], admin)
        assert summary.model_dump() == {"sent": 2, "failed": 1, "skipped": 0}
        assert notifier.send.await_count == 3

    async def test_render_failure_counted_as_failed(
        self, directory, notifier, task, admin, monkeypatch
    ):
        real_render = notification_service.render_assignment_email

        def render(email, *args):
            if email == "b@example.com":
                raise ValueError("template broken")
            return real_render(email, *args)

        monkeypatch.setattr(notification_service, "render_assignment_email", render)
        service = NotificationService(directory, notifier)

        summary = await service.notify_assignment(task, ["u-a", "u-b"], admin)
        assert summary.model_dump() == {"sent": 1, "failed": 1, "skipped": 0}
        assert [m.to_email for m in notifier.outbox] == ["a@example.com"]

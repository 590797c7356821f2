"""Tests for notification dispatch and the email notifier."""

from unittest.mock import AsyncMock

import pytest

from commentflow.comments.models import (
    ApprovalStatus,
    AuthorSnapshot,
    create_comment,
)
from commentflow.comments.notifications import EmailNotifier, NotificationDispatcher
from commentflow.email.schemas import SendEmailResponse


def _comment(comment_id: int, email: str | None, name: str | None = None):
    return create_comment(
        comment_id=comment_id,
        content=f"Comment {comment_id}",
        author=AuthorSnapshot(
            author_id=str(comment_id), author_email=email, author_name=name
        ),
        related="api::article.article:1",
        approval_status=ApprovalStatus.APPROVED,
    )


@pytest.fixture
def email_service():
    service = AsyncMock()
    service.send_abuse_report = AsyncMock(
        return_value=[SendEmailResponse(success=True, message_id="m1")]
    )
    service.send_reply_notification = AsyncMock(
        return_value=SendEmailResponse(success=True, message_id="m2")
    )
    return service


@pytest.fixture
def moderators():
    directory = AsyncMock()
    directory.find_emails_by_roles = AsyncMock(return_value=["root@example.com"])
    return directory


@pytest.fixture
def email_notifier(email_service, moderators, config) -> EmailNotifier:
    return EmailNotifier(email_service, moderators=moderators, config=config)


class TestNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_runs_send(self) -> None:
        dispatcher = NotificationDispatcher()
        send = AsyncMock()

        dispatcher.dispatch("reply", send, comment_id=1)
        assert dispatcher.pending == 1
        await dispatcher.drain()

        send.assert_awaited_once()
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self) -> None:
        dispatcher = NotificationDispatcher()
        send = AsyncMock(side_effect=RuntimeError("boom"))

        dispatcher.dispatch("abuse_report", send)
        await dispatcher.drain()

        send.assert_awaited_once()
        assert dispatcher.pending == 0


class TestAbuseReportEmail:
    @pytest.mark.asyncio
    async def test_sends_to_moderators(
        self, email_notifier, email_service, moderators
    ) -> None:
        await email_notifier.send_abuse_report("BAD_LANGUAGE", "Rude")

        moderators.find_emails_by_roles.assert_awaited_once_with(["super-admin"])
        email_service.send_abuse_report.assert_awaited_once_with(
            ["root@example.com"], "BAD_LANGUAGE", "Rude"
        )

    @pytest.mark.asyncio
    async def test_configured_roles(
        self, email_notifier, moderators, config
    ) -> None:
        config.values["moderator_roles"] = ["moderator", "super-admin"]

        await email_notifier.send_abuse_report("OTHER", "Spam")

        moderators.find_emails_by_roles.assert_awaited_once_with(
            ["moderator", "super-admin"]
        )

    @pytest.mark.asyncio
    async def test_no_moderators(self, email_notifier, email_service, moderators):
        moderators.find_emails_by_roles.return_value = []

        await email_notifier.send_abuse_report("OTHER", "Spam")

        email_service.send_abuse_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_email_service(self, moderators, config) -> None:
        notifier = EmailNotifier(None, moderators=moderators, config=config)

        await notifier.send_abuse_report("OTHER", "Spam")

    @pytest.mark.asyncio
    async def test_failed_send_raises(self, email_notifier, email_service) -> None:
        email_service.send_abuse_report.return_value = [
            SendEmailResponse(success=False, error="quota")
        ]

        with pytest.raises(RuntimeError, match="quota"):
            await email_notifier.send_abuse_report("OTHER", "Spam")


class TestReplyNotification:
    @pytest.mark.asyncio
    async def test_emails_parent_author(self, email_notifier, email_service) -> None:
        parent = _comment(1, "parent@example.com", "Parent")
        reply = _comment(2, "reply@example.com", "Replier")

        await email_notifier.send_reply_notification(reply, parent)

        email_service.send_reply_notification.assert_awaited_once_with(
            to="parent@example.com",
            recipient_name="Parent",
            replier_name="Replier",
            reply="Comment 2",
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "parent_email,reply_email",
        [(None, "reply@example.com"), ("same@example.com", "same@example.com")],
    )
    async def test_skipped(
        self, email_notifier, email_service, parent_email, reply_email
    ) -> None:
        await email_notifier.send_reply_notification(
            _comment(2, reply_email), _comment(1, parent_email)
        )

        email_service.send_reply_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_parent(self, email_notifier, email_service) -> None:
        await email_notifier.send_reply_notification(_comment(2, "r@example.com"), None)
        email_service.send_reply_notification.assert_not_awaited()

"""Comment notifications.

- NotificationDispatcher: fire-and-forget scheduling of sends
- EmailNotifier: abuse reports to moderators, replies to parent authors
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from commentflow.core.logging import get_logger

from .config import ConfigKey
from .contracts import ConfigProvider
from .models import Comment


if TYPE_CHECKING:
    from commentflow.email import EmailService


logger = get_logger(__name__)

DEFAULT_MODERATOR_ROLES = ["super-admin"]


class NotificationDispatcher:
    """Run notification sends in the background.

    A failed send is logged and dropped; it never reaches the caller.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(
        self,
        name: str,
        send: Callable[[], Awaitable[Any]],
        **log_context: Any,
    ) -> None:
        """Schedule ``send()`` without waiting for it."""
        task = asyncio.create_task(self._run(name, send, log_context))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        name: str,
        send: Callable[[], Awaitable[Any]],
        log_context: dict[str, Any],
    ) -> None:
        try:
            await send()
        except Exception as e:
            logger.warning(f"{name}_notification_failed", error=str(e), **log_context)
        else:
            logger.debug(f"{name}_notification_sent", **log_context)

    async def drain(self) -> None:
        """Wait for every scheduled send to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class ModeratorDirectory(Protocol):
    """Source of moderator email addresses."""

    async def find_emails_by_roles(self, roles: Sequence[str]) -> list[str]: ...


class EmailNotifier:
    """Notifier that sends emails through the Gmail service.

    Without an email service every send is a logged no-op.
    """

    def __init__(
        self,
        email_service: "EmailService | None",
        moderators: ModeratorDirectory,
        config: ConfigProvider,
    ):
        self.email_service = email_service
        self.moderators = moderators
        self.config = config

    async def send_abuse_report(self, reason: str, content: str) -> None:
        roles = self.config.get(ConfigKey.MODERATOR_ROLES, DEFAULT_MODERATOR_ROLES)
        if not roles:
            return

        emails = await self.moderators.find_emails_by_roles(roles)
        if not emails:
            logger.info("abuse_report_no_moderators", roles=roles)
            return

        if self.email_service is None:
            logger.info("abuse_report_email_skipped", reason="email_disabled")
            return

        responses = await self.email_service.send_abuse_report(emails, reason, content)
        failed = [r.error for r in responses if not r.success]
        if failed:
            msg = f"Abuse report email failed: {failed[0]}"
            raise RuntimeError(msg)

    async def send_reply_notification(
        self, comment: Comment, parent: Comment | None
    ) -> None:
        if parent is None:
            return

        recipient = parent.author.author_email
        if not recipient or recipient == comment.author.author_email:
            return

        if self.email_service is None:
            logger.info("reply_notification_skipped", reason="email_disabled")
            return

        response = await self.email_service.send_reply_notification(
            to=recipient,
            recipient_name=parent.author.author_name or recipient,
            replier_name=comment.author.author_name or "Someone",
            reply=comment.content,
        )
        if not response.success:
            msg = f"Reply notification failed: {response.error}"
            raise RuntimeError(msg)

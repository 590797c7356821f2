"""Abuse report workflow."""

from commentflow.core.logging import get_logger

from .config import ConfigKey
from .contracts import Identity, WorkflowContext
from .errors import ForbiddenError, ReportNotCreatedError, StorageError
from .models import CommentRef, ReportReason, parse_comment_ref
from .notifications import NotificationDispatcher
from .sanitize import sanitize_report
from .schemas import ReportResponse
from .threads import locate_comment


logger = get_logger(__name__)


class ReportWorkflow:
    """File abuse reports against comments.

    A missing target and an administrator-authored target both fail as
    ``Forbidden`` so the existence of a comment does not leak.
    """

    def __init__(
        self,
        context: WorkflowContext,
        dispatcher: NotificationDispatcher | None = None,
        abuse_notifications_enabled: bool = True,
    ):
        self.context = context
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.abuse_notifications_enabled = abuse_notifications_enabled

    async def report_abuse(
        self,
        relation: str,
        comment_id: int | str | CommentRef,
        reason: ReportReason,
        content: str,
        identity: Identity | None,
    ) -> ReportResponse:
        """Create an unresolved abuse report and notify moderators.

        Raises:
            ForbiddenError: Unauthenticated reporter, missing target, removed
                target or administrator comment.
            ReportNotCreatedError: The report could not be stored.
        """
        if identity is None or not identity.is_valid:
            raise ForbiddenError(
                "You're not allowed to take an action on that entity. Make sure "
                "you've authenticated your request properly."
            )

        ref = comment_id if isinstance(comment_id, CommentRef) else parse_comment_ref(comment_id)
        target = await locate_comment(self.context.comments, [ref], related=relation)
        if target is None or target.removed:
            raise ForbiddenError
        if target.is_admin_comment:
            raise ForbiddenError(
                "You're not allowed to take an action on that entity. "
                "This is an admin comment."
            )

        try:
            report = await self.context.reports.create(target.id, reason, content)
        except StorageError as e:
            logger.error("abuse_report_create_failed", comment_id=target.id, error=str(e))
            raise ReportNotCreatedError from e
        if report is None:
            raise ReportNotCreatedError

        logger.info(
            "abuse_report_created",
            report_id=str(report.report_id),
            comment_id=target.id,
            reason=reason.value,
            reporter_id=identity.id,
        )

        if self.abuse_notifications_enabled:
            self.dispatcher.dispatch(
                "abuse_report",
                lambda: self.context.notifier.send_abuse_report(
                    report.reason.value, report.content
                ),
                report_id=str(report.report_id),
            )

        blocked = self.context.config.get(ConfigKey.BLOCKED_AUTHOR_PROPS, [])
        return sanitize_report(report, target, blocked)

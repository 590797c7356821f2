"""Output shaping for comments and abuse reports."""

import re
from collections.abc import Iterable

from .models import AbuseReport, Comment
from .schemas import CommentResponse, ReportResponse


AUTHOR_FIELDS = ("id", "document_id", "name", "username", "email", "avatar")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def author_field_name(prop: str) -> str:
    """Normalize a blocklist entry to a nested author field name.

    ``authorEmail``, ``author_email`` and ``email`` all map to ``email``.
    """
    name = _CAMEL_BOUNDARY.sub("_", prop.strip()).lower()
    if name.startswith("author_"):
        name = name[len("author_"):]
    return name


def sanitize_comment_entity(
    comment: Comment,
    blocked_props: Iterable[str] = (),
    thread: Comment | None = None,
) -> CommentResponse:
    """Build the caller-facing view of a comment.

    Author columns are folded into a nested ``author`` object with blocked
    fields removed. When ``thread`` is given the parent is embedded (and
    sanitized the same way) instead of its numeric id.
    """
    blocked = {author_field_name(p) for p in blocked_props}
    snapshot = comment.author
    author = {
        "id": snapshot.author_id,
        "document_id": snapshot.author_document_id,
        "name": snapshot.author_name,
        "username": snapshot.author_username,
        "email": snapshot.author_email,
        "avatar": snapshot.author_avatar,
    }

    thread_of: CommentResponse | int | None = comment.thread_of
    if thread is not None:
        thread_of = sanitize_comment_entity(thread, blocked)

    return CommentResponse(
        id=comment.id,
        document_id=comment.document_id,
        content=comment.content,
        author={k: v for k, v in author.items() if k not in blocked},
        thread_of=thread_of,
        related=comment.related,
        approval_status=comment.approval_status,
        removed=comment.removed,
        blocked=comment.blocked,
        blocked_thread=comment.blocked_thread,
        is_admin_comment=comment.is_admin_comment,
        locale=comment.locale,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def sanitize_report(
    report: AbuseReport,
    comment: Comment,
    blocked_props: Iterable[str] = (),
) -> ReportResponse:
    """Build the caller-facing view of an abuse report."""
    return ReportResponse(
        id=report.report_id,
        reason=report.reason,
        content=report.content,
        resolved=report.resolved,
        created_at=report.created_at,
        related=sanitize_comment_entity(comment, blocked_props),
    )

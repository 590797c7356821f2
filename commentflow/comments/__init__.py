"""Comment moderation and threading module.

Provides:
- Comment creation for authenticated and anonymous authors
- Reply threads scoped to one related entity
- Approval flow for moderated entities
- Owner-only edits and cascading soft removal
- Abuse reports with moderator notifications

Note: Router is not exported here to avoid circular imports.
Import directly from commentflow.comments.router when needed.
"""

from .contracts import Identity, WorkflowContext
from .errors import CommentError, StorageError
from .models import (
    COMMENTS_TABLES_CQL,
    AbuseReport,
    ApprovalStatus,
    ById,
    ByOpaqueId,
    Comment,
    CommentRef,
    ReportReason,
)
from .reports import ReportWorkflow
from .workflow import CommentWorkflow


__all__ = [
    "COMMENTS_TABLES_CQL",
    "AbuseReport",
    "ApprovalStatus",
    "ById",
    "ByOpaqueId",
    "Comment",
    "CommentError",
    "CommentRef",
    "CommentWorkflow",
    "Identity",
    "ReportReason",
    "ReportWorkflow",
    "StorageError",
    "WorkflowContext",
]

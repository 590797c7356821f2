"""Database models for threaded comments and abuse reports.

Cassandra table definitions for:
- Comments: main table keyed by numeric id, plus a lookup by opaque
  document id and an adjacency table (thread_of -> child ids) for replies
- Comment reports: abuse reports partitioned by reported comment
- Commentable entities: registry of entities comments can attach to
- Sequences: numeric id allocation through lightweight transactions

Architecture: Adjacency List pattern for threads. Removal is a soft delete
(``removed`` flag) that cascades down the adjacency table.
"""

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from .errors import InvalidRelationError


class ApprovalStatus(str, Enum):
    """Moderation state of a comment."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReportReason(str, Enum):
    """Reasons for reporting a comment."""

    BAD_LANGUAGE = "BAD_LANGUAGE"
    DISCRIMINATION = "DISCRIMINATION"
    OTHER = "OTHER"


# Boolean columns that can be propagated down a thread
CASCADABLE_FLAGS = frozenset({"removed", "blocked", "blocked_thread"})


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    id BIGINT PRIMARY KEY,
    document_id TEXT,
    content TEXT,
    author_id TEXT,
    author_document_id TEXT,
    author_name TEXT,
    author_username TEXT,
    author_email TEXT,
    author_avatar TEXT,
    author_user_id BIGINT,
    thread_of BIGINT,
    related TEXT,
    approval_status TEXT,
    removed BOOLEAN,
    blocked BOOLEAN,
    blocked_thread BOOLEAN,
    is_admin_comment BOOLEAN,
    locale TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Opaque identifier -> numeric id
COMMENTS_BY_DOCUMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_document (
    document_id TEXT PRIMARY KEY,
    id BIGINT
)
"""

# Direct replies of a comment, for cascading traversal
COMMENTS_BY_THREAD_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_thread (
    thread_of BIGINT,
    id BIGINT,
    PRIMARY KEY ((thread_of), id)
) WITH CLUSTERING ORDER BY (id ASC)
"""

COMMENT_REPORT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_reports (
    comment_id BIGINT,
    report_id UUID,
    reason TEXT,
    content TEXT,
    resolved BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY ((comment_id), report_id)
)
"""

# Empty locales set means the entity accepts comments in any locale
COMMENTABLE_ENTITY_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.commentable_entities (
    uid TEXT,
    related_id TEXT,
    locales SET<TEXT>,
    require_comments_approval BOOLEAN,
    PRIMARY KEY ((uid, related_id))
)
"""

SEQUENCE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comment_sequences (
    name TEXT PRIMARY KEY,
    value BIGINT
)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENTS_BY_DOCUMENT_TABLE_CQL,
    COMMENTS_BY_THREAD_TABLE_CQL,
    COMMENT_REPORT_TABLE_CQL,
    COMMENTABLE_ENTITY_TABLE_CQL,
    SEQUENCE_TABLE_CQL,
]


# ==============================================================================
# References
# ==============================================================================


@dataclass(frozen=True)
class ById:
    """Comment reference by numeric id."""

    id: int


@dataclass(frozen=True)
class ByOpaqueId:
    """Comment reference by opaque document id."""

    document_id: str


CommentRef = ById | ByOpaqueId

_NUMERIC_REF = re.compile(r"^\s*\d+\s*$")


def parse_comment_ref(value: int | str) -> CommentRef:
    """Turn a caller-supplied id into a tagged reference.

    Integers and digit-only strings are numeric ids, anything else is an
    opaque document id.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return ById(value)
    text = str(value)
    if _NUMERIC_REF.match(text):
        return ById(int(text))
    return ByOpaqueId(text)


@dataclass(frozen=True)
class CommentFilter:
    """Lookup criteria for a single comment.

    ``related`` scopes the lookup to one related entity when set. The locale
    is only compared when ``match_locale`` is true, so ``locale=None`` can
    mean "comments without a locale".
    """

    ref: CommentRef
    related: str | None = None
    locale: str | None = None
    match_locale: bool = False

    def matches(self, comment: "Comment") -> bool:
        """Check the scoping criteria against a loaded comment."""
        if self.related is not None and comment.related != self.related:
            return False
        return not (self.match_locale and comment.locale != self.locale)


@dataclass(frozen=True)
class Relation:
    """Parsed ``<uid>:<id>`` reference to a commented-upon entity."""

    uid: str
    related_id: str

    def __str__(self) -> str:
        return f"{self.uid}:{self.related_id}"


def parse_relation(relation: str) -> Relation:
    """Split a relation string on its last colon.

    Entity type identifiers may contain colons themselves
    (``api::article.article:12``).
    """
    uid, sep, related_id = relation.rpartition(":")
    if not sep or not uid or not related_id:
        raise InvalidRelationError(relation)
    return Relation(uid=uid, related_id=related_id)


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class AuthorSnapshot:
    """Author data copied onto a comment at creation time.

    ``user_id`` is set only for authenticated authors, anonymous authors keep
    it ``None``.
    """

    author_id: str | None
    author_document_id: str | None = None
    author_name: str | None = None
    author_username: str | None = None
    author_email: str | None = None
    author_avatar: str | None = None
    user_id: int | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def to_columns(self) -> dict[str, Any]:
        return {
            "author_id": self.author_id,
            "author_document_id": self.author_document_id,
            "author_name": self.author_name,
            "author_username": self.author_username,
            "author_email": self.author_email,
            "author_avatar": self.author_avatar,
            "author_user_id": self.user_id,
        }


@dataclass
class RelatedEntity:
    """Entity that comments attach to."""

    uid: str
    related_id: str
    locales: set[str] = field(default_factory=set)
    require_comments_approval: bool = False

    @classmethod
    def from_row(cls, row: Any) -> "RelatedEntity":
        """Create RelatedEntity from Cassandra row."""
        return cls(
            uid=row.uid,
            related_id=row.related_id,
            locales=set(row.locales or ()),
            require_comments_approval=bool(row.require_comments_approval),
        )

    def accepts_locale(self, locale: str | None) -> bool:
        return locale is None or not self.locales or locale in self.locales


@dataclass
class Comment:
    """Comment entity with full details."""

    id: int
    document_id: str
    content: str
    author: AuthorSnapshot
    related: str
    approval_status: ApprovalStatus
    thread_of: int | None = None
    removed: bool = False
    blocked: bool = False
    blocked_thread: bool = False
    is_admin_comment: bool = False
    locale: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            id=row.id,
            document_id=row.document_id,
            content=row.content,
            author=AuthorSnapshot(
                author_id=row.author_id,
                author_document_id=row.author_document_id,
                author_name=row.author_name,
                author_username=row.author_username,
                author_email=row.author_email,
                author_avatar=row.author_avatar,
                user_id=row.author_user_id,
            ),
            related=row.related,
            approval_status=ApprovalStatus(row.approval_status),
            thread_of=row.thread_of,
            removed=row.removed or False,
            blocked=row.blocked or False,
            blocked_thread=row.blocked_thread or False,
            is_admin_comment=row.is_admin_comment or False,
            locale=row.locale,
            created_at=ensure_utc_aware(row.created_at),
            updated_at=ensure_utc_aware(row.updated_at or row.created_at),
        )


@dataclass
class AbuseReport:
    """Abuse report filed against a comment."""

    report_id: UUID
    comment_id: int
    reason: ReportReason
    content: str
    resolved: bool
    created_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "AbuseReport":
        """Create AbuseReport from Cassandra row."""
        return cls(
            report_id=row.report_id,
            comment_id=row.comment_id,
            reason=ReportReason(row.reason),
            content=row.content,
            resolved=row.resolved or False,
            created_at=ensure_utc_aware(row.created_at),
        )


# ==============================================================================
# Factory Functions
# ==============================================================================

_DOCUMENT_ID_ALPHABET = string.ascii_lowercase + string.digits
DOCUMENT_ID_LENGTH = 24


def generate_document_id() -> str:
    """Generate a stable, non-sequential opaque identifier."""
    return "".join(
        secrets.choice(_DOCUMENT_ID_ALPHABET) for _ in range(DOCUMENT_ID_LENGTH)
    )


def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def create_comment(
    comment_id: int,
    content: str,
    author: AuthorSnapshot,
    related: str,
    approval_status: ApprovalStatus,
    thread_of: int | None = None,
    locale: str | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = datetime.now(UTC)
    return Comment(
        id=comment_id,
        document_id=generate_document_id(),
        content=content,
        author=author,
        related=related,
        approval_status=approval_status,
        thread_of=thread_of,
        locale=locale,
        created_at=now,
        updated_at=now,
    )


def create_report(
    comment_id: int,
    reason: ReportReason,
    content: str,
) -> AbuseReport:
    """Create a new, unresolved abuse report."""
    return AbuseReport(
        report_id=uuid4(),
        comment_id=comment_id,
        reason=reason,
        content=content,
        resolved=False,
        created_at=datetime.now(UTC),
    )

"""Collaborator contracts consumed by the comment workflow.

The workflow never looks services up by name: it receives a
``WorkflowContext`` assembled once at startup, holding exactly the
capabilities it needs.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

from .models import (
    AbuseReport,
    ApprovalStatus,
    AuthorSnapshot,
    Comment,
    CommentFilter,
    RelatedEntity,
    Relation,
    ReportReason,
)


T = TypeVar("T")


# ==============================================================================
# Lookup results
# ==============================================================================


class LookupStatus(str, Enum):
    """Outcome of a lookup that may fail in transport."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Result type separating "not found" from "transport failure"."""

    status: LookupStatus
    value: T | None = None
    error: str | None = None

    @classmethod
    def found(cls, value: T) -> "Lookup[T]":
        return cls(LookupStatus.FOUND, value)

    @classmethod
    def not_found(cls) -> "Lookup[T]":
        return cls(LookupStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: str) -> "Lookup[T]":
        return cls(LookupStatus.FAILED, error=error)

    @property
    def is_failed(self) -> bool:
        return self.status is LookupStatus.FAILED


class LookupStrategy(str, Enum):
    """Identity lookup strategies, tried in order."""

    PRIMARY = "primary"  # by opaque document id
    FALLBACK = "fallback"  # by numeric id


# ==============================================================================
# Identities
# ==============================================================================


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as asserted by the access token."""

    id: int | None
    document_id: str | None = None
    username: str | None = None
    email: str | None = None
    role: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.id is not None


@dataclass(frozen=True)
class ExtendedProfile:
    """Profile data that is not carried in the access token."""

    document_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class FilterVerdict:
    """Content filter output."""

    cleaned: str
    flagged: bool = False


# ==============================================================================
# Collaborators
# ==============================================================================


class CommentRepository(Protocol):
    """Comment storage.

    Lookups return ``None`` when nothing matches and raise ``StorageError``
    on transport failures.
    """

    async def find_one(self, criteria: CommentFilter) -> Comment | None: ...

    async def create(
        self,
        *,
        content: str,
        author: AuthorSnapshot,
        related: str,
        approval_status: ApprovalStatus,
        thread_of: int | None = None,
        locale: str | None = None,
    ) -> Comment: ...

    async def update(
        self, criteria: CommentFilter, changes: dict[str, Any]
    ) -> Comment | None: ...

    async def find_children(self, comment_id: int) -> list[int]: ...

    async def set_flag(
        self, comment_ids: Sequence[int], field: str, value: bool
    ) -> None: ...


class ReportRepository(Protocol):
    """Abuse report storage."""

    async def create(
        self, comment_id: int, reason: ReportReason, content: str
    ) -> AbuseReport | None: ...


class RelatedEntityRepository(Protocol):
    """Registry of entities that accept comments."""

    async def find_related(
        self, relation: Relation, locale: str | None = None
    ) -> RelatedEntity | None: ...


class IdentityLookup(Protocol):
    """Extended profile lookup, tolerant of a primary and a fallback strategy."""

    async def find_profile(
        self, identity: Identity, strategy: LookupStrategy
    ) -> Lookup[ExtendedProfile]: ...


class ContentFilter(Protocol):
    """Profanity / abuse detector."""

    async def check(self, text: str) -> FilterVerdict: ...


class ConfigProvider(Protocol):
    """Key/value configuration with defaults."""

    def get(self, key: str, default: T) -> T: ...


class Notifier(Protocol):
    """Outbound notifications. Callers treat both sends as best-effort."""

    async def send_abuse_report(self, reason: str, content: str) -> None: ...

    async def send_reply_notification(
        self, comment: Comment, parent: Comment | None
    ) -> None: ...


@dataclass
class WorkflowContext:
    """Capabilities the comment workflow is allowed to use."""

    comments: CommentRepository
    reports: ReportRepository
    related: RelatedEntityRepository
    identity: IdentityLookup
    content_filter: ContentFilter
    config: ConfigProvider
    notifier: Notifier

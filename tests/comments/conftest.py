"""In-memory collaborators for comment workflow tests."""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import pytest

from commentflow.comments.contracts import (
    ExtendedProfile,
    Identity,
    Lookup,
    LookupStrategy,
    WorkflowContext,
)
from commentflow.comments.errors import StorageError
from commentflow.comments.filtering import KeywordContentFilter
from commentflow.comments.models import (
    AbuseReport,
    ApprovalStatus,
    AuthorSnapshot,
    ById,
    Comment,
    CommentFilter,
    CommentRef,
    RelatedEntity,
    Relation,
    ReportReason,
    create_comment,
    create_report,
)
from commentflow.comments.notifications import NotificationDispatcher
from commentflow.comments.reports import ReportWorkflow
from commentflow.comments.workflow import CommentWorkflow


RELATION = "api::article.article:1"


class InMemoryCommentRepository:
    """Dictionary-backed comment storage."""

    def __init__(self) -> None:
        self.comments: dict[int, Comment] = {}
        self.extra_children: dict[int, list[int]] = {}
        self.failing_refs: set[CommentRef] = set()
        self.flaky_refs: set[CommentRef] = set()
        self.lookups: list[CommentRef] = []
        self.flag_calls: list[tuple[list[int], str, bool]] = []
        self.update_calls: list[tuple[CommentFilter, dict[str, Any]]] = []
        self._next_id = 1

    def add(self, **fields: Any) -> Comment:
        comment = create_comment(
            comment_id=fields.pop("id", self._next_id),
            content=fields.pop("content", "Existing comment"),
            author=fields.pop("author", AuthorSnapshot(author_id="1")),
            related=fields.pop("related", RELATION),
            approval_status=fields.pop("approval_status", ApprovalStatus.APPROVED),
            thread_of=fields.pop("thread_of", None),
            locale=fields.pop("locale", None),
        )
        for name, value in fields.items():
            setattr(comment, name, value)
        self.comments[comment.id] = comment
        self._next_id = max(self._next_id, comment.id + 1)
        return comment

    async def find_one(self, criteria: CommentFilter) -> Comment | None:
        self.lookups.append(criteria.ref)
        if criteria.ref in self.flaky_refs:
            self.flaky_refs.discard(criteria.ref)
            msg = "read timeout"
            raise StorageError(msg)
        if criteria.ref in self.failing_refs:
            msg = "storage unavailable"
            raise StorageError(msg)

        if isinstance(criteria.ref, ById):
            comment = self.comments.get(criteria.ref.id)
        else:
            comment = next(
                (
                    c
                    for c in self.comments.values()
                    if c.document_id == criteria.ref.document_id
                ),
                None,
            )
        if comment is None or not criteria.matches(comment):
            return None
        return comment

    async def create(
        self,
        *,
        content: str,
        author: AuthorSnapshot,
        related: str,
        approval_status: ApprovalStatus,
        thread_of: int | None = None,
        locale: str | None = None,
    ) -> Comment:
        return self.add(
            content=content,
            author=author,
            related=related,
            approval_status=approval_status,
            thread_of=thread_of,
            locale=locale,
        )

    async def update(
        self, criteria: CommentFilter, changes: dict[str, Any]
    ) -> Comment | None:
        self.update_calls.append((criteria, changes))
        comment = await self.find_one(criteria)
        if comment is None:
            return None
        for name, value in changes.items():
            setattr(comment, name, value)
        comment.updated_at = datetime.now(UTC)
        return comment

    async def find_children(self, comment_id: int) -> list[int]:
        children = [c.id for c in self.comments.values() if c.thread_of == comment_id]
        return children + self.extra_children.get(comment_id, [])

    async def set_flag(
        self, comment_ids: Sequence[int], field: str, value: bool
    ) -> None:
        self.flag_calls.append((list(comment_ids), field, value))
        for comment_id in comment_ids:
            setattr(self.comments[comment_id], field, value)


class InMemoryReportRepository:
    def __init__(self) -> None:
        self.reports: list[AbuseReport] = []
        self.fail = False

    async def create(
        self, comment_id: int, reason: ReportReason, content: str
    ) -> AbuseReport | None:
        if self.fail:
            msg = "write timeout"
            raise StorageError(msg)
        report = create_report(comment_id, reason, content)
        self.reports.append(report)
        return report


class InMemoryRelatedEntities:
    def __init__(self) -> None:
        self.entities: dict[tuple[str, str], RelatedEntity] = {}

    def add(self, relation: str, **fields: Any) -> RelatedEntity:
        uid, _, related_id = relation.rpartition(":")
        entity = RelatedEntity(uid=uid, related_id=related_id, **fields)
        self.entities[(uid, related_id)] = entity
        return entity

    async def find_related(
        self, relation: Relation, locale: str | None = None
    ) -> RelatedEntity | None:
        entity = self.entities.get((relation.uid, relation.related_id))
        if entity is None or not entity.accepts_locale(locale):
            return None
        return entity

    async def register(self, entity: RelatedEntity) -> RelatedEntity:
        self.entities[(entity.uid, entity.related_id)] = entity
        return entity


class StubIdentityLookup:
    """Answers every strategy from a preset table."""

    def __init__(self) -> None:
        self.results: dict[LookupStrategy, Lookup[ExtendedProfile]] = {}
        self.calls: list[LookupStrategy] = []

    async def find_profile(
        self, identity: Identity, strategy: LookupStrategy
    ) -> Lookup[ExtendedProfile]:
        self.calls.append(strategy)
        return self.results.get(strategy, Lookup.not_found())


class DictConfig:
    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self.values = values or {}

    def get(self, key: str, default: Any) -> Any:
        name = getattr(key, "value", key)
        value = self.values.get(name)
        return default if value is None else value


class RecordingNotifier:
    def __init__(self) -> None:
        self.abuse_reports: list[tuple[str, str]] = []
        self.replies: list[tuple[Comment, Comment | None]] = []
        self.error: Exception | None = None

    async def send_abuse_report(self, reason: str, content: str) -> None:
        if self.error:
            raise self.error
        self.abuse_reports.append((reason, content))

    async def send_reply_notification(
        self, comment: Comment, parent: Comment | None
    ) -> None:
        if self.error:
            raise self.error
        self.replies.append((comment, parent))


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def comments_repo() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def reports_repo() -> InMemoryReportRepository:
    return InMemoryReportRepository()


@pytest.fixture
def related_repo() -> InMemoryRelatedEntities:
    related = InMemoryRelatedEntities()
    related.add(RELATION)
    return related


@pytest.fixture
def identity_lookup() -> StubIdentityLookup:
    return StubIdentityLookup()


@pytest.fixture
def config() -> DictConfig:
    return DictConfig()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def context(
    comments_repo,
    reports_repo,
    related_repo,
    identity_lookup,
    config,
    notifier,
) -> WorkflowContext:
    return WorkflowContext(
        comments=comments_repo,
        reports=reports_repo,
        related=related_repo,
        identity=identity_lookup,
        content_filter=KeywordContentFilter(["darn"]),
        config=config,
        notifier=notifier,
    )


@pytest.fixture
def dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher()


@pytest.fixture
def workflow(context, dispatcher) -> CommentWorkflow:
    return CommentWorkflow(context, dispatcher=dispatcher)


@pytest.fixture
def report_workflow(context, dispatcher) -> ReportWorkflow:
    return ReportWorkflow(context, dispatcher=dispatcher)


@pytest.fixture
def identity() -> Identity:
    return Identity(
        id=10,
        document_id="user-doc-10",
        username="ada",
        email="ada@example.com",
        role="authenticated",
    )

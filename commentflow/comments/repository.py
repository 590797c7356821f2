"""Cassandra repositories for comments, abuse reports and commentable entities.

Lookups return ``None`` when nothing matches. Driver failures are raised as
``StorageError`` so callers can tell a transport problem from a miss.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from cassandra import DriverException

from commentflow.core.logging import get_logger

from .errors import CommentValidationError, StorageError
from .models import (
    CASCADABLE_FLAGS,
    AbuseReport,
    ApprovalStatus,
    AuthorSnapshot,
    ById,
    Comment,
    CommentFilter,
    RelatedEntity,
    Relation,
    ReportReason,
    create_comment,
    create_report,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)

# Columns an update may change
UPDATABLE_COLUMNS = frozenset({"content", "approval_status"}) | CASCADABLE_FLAGS

COMMENT_SEQUENCE = "comments"

# Attempts at allocating an id before giving up under contention
MAX_SEQUENCE_ATTEMPTS = 20


class CassandraRepository:
    """Shared session handling."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        raise NotImplementedError

    async def _execute(self, statement: Any, params: Sequence[Any] = ()) -> Any:
        try:
            return await self.session.aexecute(statement, params)
        except DriverException as e:
            logger.error(
                "cassandra_query_failed",
                repository=type(self).__name__,
                error=str(e),
            )
            raise StorageError(str(e)) from e


class CassandraCommentRepository(CassandraRepository):
    """Comment storage with adjacency lookups for threads."""

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {ks}.comments
            (id, document_id, content, author_id, author_document_id, author_name,
             author_username, author_email, author_avatar, author_user_id, thread_of,
             related, approval_status, removed, blocked, blocked_thread,
             is_admin_comment, locale, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_by_document = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_document (document_id, id)
            VALUES (?, ?)
        """)

        self._insert_by_thread = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_thread (thread_of, id)
            VALUES (?, ?)
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {ks}.comments WHERE id = ?
        """)

        self._get_id_by_document = self.session.prepare(f"""
            SELECT id FROM {ks}.comments_by_document WHERE document_id = ?
        """)

        self._get_children = self.session.prepare(f"""
            SELECT id FROM {ks}.comments_by_thread WHERE thread_of = ?
        """)

        # Sequence allocation (lightweight transactions)
        self._get_sequence = self.session.prepare(f"""
            SELECT value FROM {ks}.comment_sequences WHERE name = ?
        """)

        self._init_sequence = self.session.prepare(f"""
            INSERT INTO {ks}.comment_sequences (name, value)
            VALUES (?, ?)
            IF NOT EXISTS
        """)

        self._advance_sequence = self.session.prepare(f"""
            UPDATE {ks}.comment_sequences
            SET value = ?
            WHERE name = ?
            IF value = ?
        """)

        self._update_statements: dict[tuple[str, ...], Any] = {}
        self._flag_statements: dict[str, Any] = {}

    # ==========================================================================
    # Id allocation
    # ==========================================================================

    async def next_id(self) -> int:
        """Allocate the next numeric comment id."""
        for _ in range(MAX_SEQUENCE_ATTEMPTS):
            row = (await self._execute(self._get_sequence, (COMMENT_SEQUENCE,))).one()
            if row is None:
                result = await self._execute(self._init_sequence, (COMMENT_SEQUENCE, 1))
                if result.was_applied:
                    return 1
                continue

            candidate = row.value + 1
            result = await self._execute(
                self._advance_sequence, (candidate, COMMENT_SEQUENCE, row.value)
            )
            if result.was_applied:
                return candidate

        msg = "Could not allocate a comment id"
        raise StorageError(msg)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def _resolve_id(self, criteria: CommentFilter) -> int | None:
        if isinstance(criteria.ref, ById):
            return criteria.ref.id
        row = (
            await self._execute(self._get_id_by_document, (criteria.ref.document_id,))
        ).one()
        return row.id if row else None

    async def find_one(self, criteria: CommentFilter) -> Comment | None:
        comment_id = await self._resolve_id(criteria)
        if comment_id is None:
            return None

        row = (await self._execute(self._get_comment, (comment_id,))).one()
        if row is None:
            return None

        comment = Comment.from_row(row)
        return comment if criteria.matches(comment) else None

    async def find_children(self, comment_id: int) -> list[int]:
        rows = await self._execute(self._get_children, (comment_id,))
        return [row.id for row in rows]

    # ==========================================================================
    # Writes
    # ==========================================================================

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
        comment = create_comment(
            comment_id=await self.next_id(),
            content=content,
            author=author,
            related=related,
            approval_status=approval_status,
            thread_of=thread_of,
            locale=locale,
        )
        snapshot = comment.author

        await self._execute(
            self._insert_comment,
            (
                comment.id,
                comment.document_id,
                comment.content,
                snapshot.author_id,
                snapshot.author_document_id,
                snapshot.author_name,
                snapshot.author_username,
                snapshot.author_email,
                snapshot.author_avatar,
                snapshot.user_id,
                comment.thread_of,
                comment.related,
                comment.approval_status.value,
                comment.removed,
                comment.blocked,
                comment.blocked_thread,
                comment.is_admin_comment,
                comment.locale,
                comment.created_at,
                comment.updated_at,
            ),
        )
        await self._execute(self._insert_by_document, (comment.document_id, comment.id))
        if comment.thread_of is not None:
            await self._execute(self._insert_by_thread, (comment.thread_of, comment.id))

        return comment

    def _update_statement(self, columns: tuple[str, ...]) -> Any:
        statement = self._update_statements.get(columns)
        if statement is None:
            assignments = ", ".join(f"{column} = ?" for column in columns)
            statement = self.session.prepare(f"""
                UPDATE {self.keyspace}.comments
                SET {assignments}, updated_at = ?
                WHERE id = ?
            """)
            self._update_statements[columns] = statement
        return statement

    async def update(
        self, criteria: CommentFilter, changes: dict[str, Any]
    ) -> Comment | None:
        """Apply ``changes`` to the comment matching ``criteria``.

        Returns the updated comment, or ``None`` when nothing matches.
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise CommentValidationError(f"Cannot update fields: {sorted(unknown)}")

        comment = await self.find_one(criteria)
        if comment is None:
            return None

        columns = tuple(sorted(changes))
        values = [
            v.value if isinstance(v, ApprovalStatus) else v
            for v in (changes[c] for c in columns)
        ]
        now = datetime.now(UTC)
        await self._execute(
            self._update_statement(columns), (*values, now, comment.id)
        )

        for column in columns:
            value = changes[column]
            if column == "approval_status":
                value = ApprovalStatus(value)
            setattr(comment, column, value)
        comment.updated_at = now
        return comment

    async def set_flag(
        self, comment_ids: Sequence[int], field: str, value: bool
    ) -> None:
        """Set a boolean flag on several comments at once."""
        if field not in CASCADABLE_FLAGS:
            raise CommentValidationError(f'Field "{field}" is not a flag')
        if not comment_ids:
            return

        statement = self._flag_statements.get(field)
        if statement is None:
            statement = self.session.prepare(f"""
                UPDATE {self.keyspace}.comments
                SET {field} = ?, updated_at = ?
                WHERE id IN ?
            """)
            self._flag_statements[field] = statement

        await self._execute(statement, (value, datetime.now(UTC), list(comment_ids)))


class CassandraReportRepository(CassandraRepository):
    """Abuse report storage."""

    def _prepare_statements(self) -> None:
        self._insert_report = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comment_reports
            (comment_id, report_id, reason, content, resolved, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

    async def create(
        self, comment_id: int, reason: ReportReason, content: str
    ) -> AbuseReport | None:
        report = create_report(comment_id, reason, content)
        await self._execute(
            self._insert_report,
            (
                report.comment_id,
                report.report_id,
                report.reason.value,
                report.content,
                report.resolved,
                report.created_at,
            ),
        )
        return report


class CassandraRelatedEntityRepository(CassandraRepository):
    """Registry of entities that accept comments."""

    def _prepare_statements(self) -> None:
        self._get_entity = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.commentable_entities
            WHERE uid = ? AND related_id = ?
        """)

        self._upsert_entity = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.commentable_entities
            (uid, related_id, locales, require_comments_approval)
            VALUES (?, ?, ?, ?)
        """)

    async def find_related(
        self, relation: Relation, locale: str | None = None
    ) -> RelatedEntity | None:
        """Return the entity, or ``None`` when it is unknown or not in ``locale``."""
        row = (
            await self._execute(self._get_entity, (relation.uid, relation.related_id))
        ).one()
        if row is None:
            return None

        entity = RelatedEntity.from_row(row)
        return entity if entity.accepts_locale(locale) else None

    async def register(self, entity: RelatedEntity) -> RelatedEntity:
        """Create or replace a commentable entity."""
        await self._execute(
            self._upsert_entity,
            (
                entity.uid,
                entity.related_id,
                entity.locales or None,
                entity.require_comments_approval,
            ),
        )
        logger.info(
            "commentable_entity_registered",
            uid=entity.uid,
            related_id=entity.related_id,
        )
        return entity

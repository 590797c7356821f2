"""Comment workflow.

Orchestrates comment creation, editing and removal:

    request -> thread -> author + content filter -> approval -> persist
            -> sanitize -> notify (best-effort)

Comments move from absent to PENDING or APPROVED on creation and are soft
deleted by setting ``removed``; nothing here hard-deletes a comment.
"""

import asyncio

from commentflow.core.logging import get_logger

from .approval import ApprovalPolicy
from .authors import AuthorPayload, AuthorResolver
from .cascade import CascadeRemover
from .config import ConfigKey
from .contracts import Identity, WorkflowContext
from .errors import (
    CommentError,
    ForbiddenError,
    MalformedAuthorError,
    NotFoundOrForbiddenError,
    RelationNotFoundError,
    StorageError,
    UnauthenticatedAuthorError,
)
from .filtering import ContentFilterGate
from .models import (
    ApprovalStatus,
    ById,
    ByOpaqueId,
    Comment,
    CommentFilter,
    CommentRef,
    parse_comment_ref,
    parse_relation,
)
from .notifications import NotificationDispatcher
from .sanitize import sanitize_comment_entity
from .schemas import CommentResponse
from .threads import ThreadResolver, locate_comment


logger = get_logger(__name__)


class CommentWorkflow:
    """Create, update and remove comments."""

    def __init__(
        self,
        context: WorkflowContext,
        dispatcher: NotificationDispatcher | None = None,
        reject_flagged_content: bool = True,
        reply_notifications_enabled: bool = False,
    ):
        self.context = context
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.reply_notifications_enabled = reply_notifications_enabled

        self.authors = AuthorResolver(context.identity)
        self.threads = ThreadResolver(context.comments)
        self.approval = ApprovalPolicy(context.config)
        self.content_gate = ContentFilterGate(
            context.content_filter, reject_flagged=reject_flagged_content
        )
        self.cascade = CascadeRemover(context.comments)

    @property
    def blocked_author_props(self) -> list[str]:
        return self.context.config.get(ConfigKey.BLOCKED_AUTHOR_PROPS, [])

    # ==========================================================================
    # Create
    # ==========================================================================

    async def create(
        self,
        relation: str,
        content: str,
        identity: Identity | None = None,
        author: AuthorPayload | None = None,
        thread_of: int | str | CommentRef | None = None,
        approval_status: ApprovalStatus | None = None,
        locale: str | None = None,
    ) -> CommentResponse:
        """Create a new comment or reply.

        Raises:
            InvalidRelationError: Relation is not ``<type>:<id>``.
            RelationNotFoundError: Related entity does not exist.
            ThreadNotFoundError: Parent comment cannot be resolved.
            UnauthenticatedAuthorError: No usable author.
            ContentRejectedError: Content filter flagged the text.
            InvalidApprovalStatusError: Non-PENDING status under approval flow.
        """
        parsed = parse_relation(relation)
        entity = await self.context.related.find_related(parsed, locale)
        if entity is None or not entity.accepts_locale(locale):
            raise RelationNotFoundError(relation)

        thread_ref = _as_ref(thread_of)
        parent = await self.threads.resolve(thread_ref, relation, locale)

        if author is None and (identity is None or not identity.is_valid):
            raise UnauthenticatedAuthorError

        clean_content, snapshot = await asyncio.gather(
            self.content_gate.screen(content),
            self.authors.resolve(identity, author),
        )
        if not snapshot.author_id:
            raise MalformedAuthorError

        status = self.approval.decide(parsed.uid, entity, approval_status)

        comment = await self.context.comments.create(
            content=clean_content,
            author=snapshot,
            related=relation,
            approval_status=status,
            thread_of=parent.id if parent else None,
            locale=locale,
        )
        logger.info(
            "comment_created",
            comment_id=comment.id,
            related=relation,
            thread_of=comment.thread_of,
            approval_status=status.value,
            anonymous=snapshot.is_anonymous,
        )

        if self.reply_notifications_enabled and parent is not None:
            self.dispatcher.dispatch(
                "reply",
                lambda: self.context.notifier.send_reply_notification(comment, parent),
                comment_id=comment.id,
                parent_id=parent.id,
            )

        return sanitize_comment_entity(comment, self.blocked_author_props, thread=parent)

    # ==========================================================================
    # Update
    # ==========================================================================

    async def update(
        self,
        relation: str,
        comment_id: int | str | CommentRef,
        content: str,
        identity: Identity | None = None,
        author: AuthorPayload | None = None,
    ) -> CommentResponse | None:
        """Edit the content of a comment owned by the caller.

        Returns ``None`` without changing anything when the comment does not
        exist or belongs to someone else.

        Raises:
            UnauthenticatedAuthorError: No usable author.
            ContentRejectedError: Content filter flagged the text.
        """
        if author is None and (identity is None or not identity.is_valid):
            raise UnauthenticatedAuthorError

        caller_id = _caller_author_id(identity, author)
        clean_content = await self.content_gate.screen(content)

        ref = _as_ref(comment_id)
        existing = await locate_comment(self.context.comments, [ref], related=relation)
        if existing is None or existing.author.author_id != caller_id:
            logger.info(
                "comment_update_ignored",
                ref=repr(ref),
                related=relation,
                found=existing is not None,
            )
            return None

        updated = await self.context.comments.update(
            CommentFilter(ref=ById(existing.id), related=relation),
            {"content": clean_content},
        )
        if updated is None:
            return None

        logger.info("comment_updated", comment_id=updated.id, related=relation)
        return sanitize_comment_entity(updated, self.blocked_author_props)

    # ==========================================================================
    # Remove
    # ==========================================================================

    async def remove(
        self,
        relation: str,
        comment_id: int | str | CommentRef,
        identity: Identity | None = None,
        author_id: int | str | None = None,
        author_document_id: str | None = None,
        comment_document_id: str | None = None,
    ) -> CommentResponse:
        """Soft delete a comment owned by the caller and all its replies.

        Raises:
            UnauthenticatedAuthorError: No identity and no author reference.
            NotFoundOrForbiddenError: The comment does not exist, is not
                owned by the caller, or could not be updated.
        """
        has_identity = identity is not None and identity.is_valid
        if not has_identity and author_id is None and not author_document_id:
            raise UnauthenticatedAuthorError

        primary = _as_ref(comment_id)
        refs: list[CommentRef] = [primary]
        # A failed lookup is retried with the id taken as a document id
        fallback_id = primary.id if isinstance(primary, ById) else primary.document_id
        secondary = ByOpaqueId(comment_document_id or str(fallback_id))
        if secondary != primary:
            refs.append(secondary)

        try:
            entity = await locate_comment(self.context.comments, refs, related=relation)
            if entity is None:
                raise NotFoundOrForbiddenError

            caller = identity if has_identity else None
            if not _is_owner(entity, caller, author_id, author_document_id):
                raise ForbiddenError(
                    "You're not allowed to delete this comment. You can only "
                    "delete your own comments."
                )

            removed = await self.context.comments.update(
                CommentFilter(ref=ById(entity.id), related=relation),
                {"removed": True},
            )
            if removed is None:
                raise NotFoundOrForbiddenError

            descendants = await self.cascade.apply(entity.id, "removed", True)
        except (CommentError, StorageError) as e:
            logger.info(
                "comment_remove_denied",
                ref=repr(refs[0]),
                related=relation,
                reason=type(e).__name__,
            )
            raise NotFoundOrForbiddenError from e

        logger.info(
            "comment_removed",
            comment_id=entity.id,
            related=relation,
            descendants=descendants,
        )
        return sanitize_comment_entity(removed, self.blocked_author_props)


def _as_ref(value: int | str | CommentRef | None) -> CommentRef | None:
    if value is None or isinstance(value, CommentRef):
        return value
    return parse_comment_ref(value)


def _caller_author_id(identity: Identity | None, author: AuthorPayload | None) -> str | None:
    if identity is not None and identity.is_valid:
        return str(identity.id)
    if author is not None and author.id not in (None, ""):
        return str(author.id)
    return None


def _is_owner(
    comment: Comment,
    identity: Identity | None,
    owner_id: int | str | None,
    owner_document_id: str | None,
) -> bool:
    """Ownership check, by authenticated id, then document id, then author id."""
    if identity is not None:
        return comment.author.author_id == str(identity.id)
    if owner_document_id:
        return comment.author.author_document_id == owner_document_id
    return comment.author.author_id == str(owner_id)

"""Comment workflow API endpoints.

Provides routes for:
- Comment creation, editing and soft removal under a related entity
- Abuse reports
- Commentable entity registration (moderators)

``relation`` path parameters use the ``<type>:<id>`` form, for example
``api::article.article:12``.
"""

from fastapi import APIRouter, Query, status

from commentflow.auth.dependencies import ModeratorUser, OptionalUser
from commentflow.core.logging import get_logger

from .dependencies import (
    CommentWorkflowDep,
    RelatedEntitiesDep,
    ReportWorkflowDep,
    handle_comment_error,
    identity_from_user,
)
from .errors import CommentError
from .models import RelatedEntity, parse_relation
from .schemas import (
    CommentResponse,
    CreateCommentRequest,
    RegisterEntityRequest,
    RelatedEntityResponse,
    ReportAbuseRequest,
    ReportResponse,
    UpdateCommentRequest,
)


logger = get_logger(__name__)


router = APIRouter(prefix="/v1/comments", tags=["comments"])


@router.put(
    "/entities/{relation}",
    response_model=RelatedEntityResponse,
    summary="Register commentable entity",
)
async def register_entity(
    relation: str,
    data: RegisterEntityRequest,
    registry: RelatedEntitiesDep,
    user: ModeratorUser,
) -> RelatedEntityResponse:
    """Open an entity for comments, or change its approval requirement."""
    try:
        parsed = parse_relation(relation)
    except CommentError as e:
        raise handle_comment_error(e) from e

    entity = await registry.register(
        RelatedEntity(
            uid=parsed.uid,
            related_id=parsed.related_id,
            locales=set(data.locales),
            require_comments_approval=data.require_comments_approval,
        )
    )
    logger.info("entity_registered_by_moderator", relation=relation, user_id=user.id)

    return RelatedEntityResponse(
        uid=entity.uid,
        related_id=entity.related_id,
        locales=sorted(entity.locales),
        require_comments_approval=entity.require_comments_approval,
    )


@router.post(
    "/{relation}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    relation: str,
    data: CreateCommentRequest,
    workflow: CommentWorkflowDep,
    user: OptionalUser,
) -> CommentResponse:
    """Create a comment or a reply.

    Authenticated callers are the author. Anonymous callers must send an
    ``author`` object with at least an ``id``.
    """
    try:
        return await workflow.create(
            relation=relation,
            content=data.content,
            identity=identity_from_user(user),
            author=data.author,
            thread_of=data.thread_of,
            approval_status=data.approval_status,
            locale=data.locale,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.put(
    "/{relation}/comment/{comment_id}",
    response_model=CommentResponse | None,
    summary="Update comment",
)
async def update_comment(
    relation: str,
    comment_id: str,
    data: UpdateCommentRequest,
    workflow: CommentWorkflowDep,
    user: OptionalUser,
) -> CommentResponse | None:
    """Edit a comment.

    Only the author can edit. Editing someone else's comment, or one that
    does not exist, changes nothing and returns ``null``.
    """
    try:
        return await workflow.update(
            relation=relation,
            comment_id=comment_id,
            content=data.content,
            identity=identity_from_user(user),
            author=data.author,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.delete(
    "/{relation}/comment/{comment_id}",
    response_model=CommentResponse,
    summary="Remove comment",
)
async def remove_comment(
    relation: str,
    comment_id: str,
    workflow: CommentWorkflowDep,
    user: OptionalUser,
    author_id: str | None = Query(default=None),
    author_document_id: str | None = Query(default=None),
    comment_document_id: str | None = Query(default=None),
) -> CommentResponse:
    """Soft delete a comment and all its replies.

    Anonymous authors identify themselves with ``author_id`` or
    ``author_document_id``.
    """
    try:
        return await workflow.remove(
            relation=relation,
            comment_id=comment_id,
            identity=identity_from_user(user),
            author_id=author_id,
            author_document_id=author_document_id,
            comment_document_id=comment_document_id,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e


@router.post(
    "/{relation}/comment/{comment_id}/report-abuse",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report comment",
)
async def report_abuse(
    relation: str,
    comment_id: str,
    data: ReportAbuseRequest,
    workflow: ReportWorkflowDep,
    user: OptionalUser,
) -> ReportResponse:
    """Report a comment to the moderators. Requires authentication."""
    try:
        return await workflow.report_abuse(
            relation=relation,
            comment_id=comment_id,
            reason=data.reason,
            content=data.content,
            identity=identity_from_user(user),
        )
    except CommentError as e:
        raise handle_comment_error(e) from e

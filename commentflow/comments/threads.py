"""Thread (parent comment) resolution and comment lookup by reference."""

from collections.abc import Sequence

from commentflow.core.logging import get_logger

from .contracts import CommentRepository
from .errors import StorageError, ThreadNotFoundError
from .models import ById, ByOpaqueId, Comment, CommentFilter, CommentRef


logger = get_logger(__name__)


class ThreadResolver:
    """Resolve the parent of a reply.

    A parent must belong to the same related entity and locale as the reply.
    An opaque reference is translated to a numeric id first; the scoped lookup
    always runs by numeric id.
    """

    def __init__(self, comments: CommentRepository):
        self.comments = comments

    async def resolve(
        self,
        thread_of: CommentRef | None,
        related: str,
        locale: str | None = None,
    ) -> Comment | None:
        """Return the parent comment, or ``None`` for a top-level comment.

        Raises:
            ThreadNotFoundError: The parent does not exist, was removed, or
                lives under another related entity or locale.
        """
        if _is_blank(thread_of):
            return None

        ref = thread_of
        if isinstance(ref, ByOpaqueId):
            located = await self.comments.find_one(CommentFilter(ref=ref))
            if located is None:
                raise ThreadNotFoundError(
                    "Thread comment with provided document id does not exist"
                )
            ref = ById(located.id)

        parent = await self.comments.find_one(
            CommentFilter(ref=ref, related=related, locale=locale, match_locale=True)
        )
        if parent is None or parent.removed:
            raise ThreadNotFoundError
        return parent


async def locate_comment(
    comments: CommentRepository,
    refs: Sequence[CommentRef],
    related: str | None = None,
) -> Comment | None:
    """Find a comment by the first reference that answers.

    References are tried in order. A storage failure moves on to the next
    reference; a definitive "not found" stops the search. The last storage
    failure is re-raised when no reference could be checked.
    """
    last_error: StorageError | None = None
    for ref in refs:
        try:
            return await comments.find_one(CommentFilter(ref=ref, related=related))
        except StorageError as e:
            logger.warning("comment_lookup_failed", ref=repr(ref), error=str(e))
            last_error = e

    if last_error is not None:
        raise last_error
    return None


def _is_blank(ref: CommentRef | None) -> bool:
    """``None``, ``0`` and empty document ids mean "no parent"."""
    if ref is None:
        return True
    if isinstance(ref, ById):
        return ref.id == 0
    return not ref.document_id.strip()

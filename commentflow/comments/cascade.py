"""Propagation of boolean flags down a comment thread."""

from collections import deque

from commentflow.core.logging import get_logger

from .contracts import CommentRepository
from .errors import CommentValidationError
from .models import CASCADABLE_FLAGS


logger = get_logger(__name__)


class CascadeRemover:
    """Apply a flag to every descendant of a comment.

    Traversal is breadth-first over the adjacency table and keeps a visited
    set, so a corrupted thread containing a cycle still terminates. The root
    comment itself is not touched.
    """

    def __init__(self, comments: CommentRepository):
        self.comments = comments

    async def apply(self, comment_id: int, field: str = "removed", value: bool = True) -> int:
        """Set ``field`` to ``value`` on all descendants.

        Returns:
            Number of descendants updated.
        """
        if field not in CASCADABLE_FLAGS:
            raise CommentValidationError(f'Field "{field}" cannot be cascaded')

        visited = {comment_id}
        frontier = deque([comment_id])
        updated = 0

        while frontier:
            parent_id = frontier.popleft()
            children = [
                child
                for child in dict.fromkeys(await self.comments.find_children(parent_id))
                if child not in visited
            ]
            if not children:
                continue

            await self.comments.set_flag(children, field, value)
            visited.update(children)
            frontier.extend(children)
            updated += len(children)

        logger.debug(
            "comment_flag_cascaded",
            comment_id=comment_id,
            field=field,
            value=value,
            descendants=updated,
        )
        return updated

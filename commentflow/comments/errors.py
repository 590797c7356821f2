"""Comment workflow exceptions.

Every error raised at a workflow boundary carries an HTTP-style status code
and a message safe to show to the caller.
"""

from fastapi import status


class CommentError(Exception):
    """Base comment error."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str = "comment_error",
        status_code: int | None = None,
    ):
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class StorageError(Exception):
    """Transport failure talking to a storage collaborator.

    Distinct from "not found", which repositories report as ``None``.
    """


# ==============================================================================
# Client faults (400)
# ==============================================================================


class CommentValidationError(CommentError):
    """Malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class InvalidRelationError(CommentValidationError):
    """Relation string is not ``<type>:<id>``."""

    def __init__(self, relation: str):
        super().__init__(
            f'Relation "{relation}" is not valid. Expected "<type>:<id>".',
            "invalid_relation",
        )


class InvalidApprovalStatusError(CommentValidationError):
    """Caller asked for a non-PENDING status while approval is required."""

    def __init__(self, message: str = "Invalid approval status"):
        super().__init__(message, "invalid_approval_status")


class ContentRejectedError(CommentValidationError):
    """Content filter flagged the text."""

    def __init__(self, message: str = "Bad language used in the comment content"):
        super().__init__(message, "content_rejected")


# ==============================================================================
# Authorization faults (403)
# ==============================================================================


class UnauthenticatedAuthorError(CommentError):
    """No usable author could be established for the request."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str = (
            "Not able to recognise author of a comment. Make sure you've "
            'provided "author" property in a payload or authenticated your '
            "request properly."
        ),
    ):
        super().__init__(message, "unauthenticated_author")


class MissingAuthorError(UnauthenticatedAuthorError):
    """Neither an authenticated identity nor an author payload was given."""


class MalformedAuthorError(UnauthenticatedAuthorError):
    """An author was given but has no author id."""


class ForbiddenError(CommentError):
    """Caller may not act on the entity."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str = "You're not allowed to take an action on that entity.",
    ):
        super().__init__(message, "forbidden")


# ==============================================================================
# Missing entities (404)
# ==============================================================================


class NotFoundError(CommentError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code)


class RelationNotFoundError(NotFoundError):
    """Related entity does not exist."""

    def __init__(self, relation: str):
        super().__init__(
            f'Relation for field "related" does not exist: "{relation}". '
            "Check your payload please.",
            "relation_not_found",
        )


class ThreadNotFoundError(NotFoundError):
    """Parent comment of a reply does not exist."""

    def __init__(self, message: str = "Thread does not exist"):
        super().__init__(message, "thread_not_found")


class NotFoundOrForbiddenError(NotFoundError):
    """Collapses "not found" and "not owned" so existence does not leak."""

    def __init__(self) -> None:
        super().__init__(
            "Entity does not exist or you're not allowed to take an action on it",
            "not_found_or_forbidden",
        )


# ==============================================================================
# Server faults (500)
# ==============================================================================


class InternalCommentError(CommentError):
    """Unexpected failure inside the workflow."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal error", code: str = "internal_error"):
        super().__init__(message, code)


class ReportNotCreatedError(InternalCommentError):
    """Abuse report could not be persisted."""

    def __init__(self) -> None:
        super().__init__("Report cannot be created", "report_not_created")

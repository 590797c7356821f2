"""Pydantic schemas for the comment workflow.

Request/Response models with validation for:
- Comment create, update and removal
- Abuse reports
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import ApprovalStatus, ReportReason


# ==============================================================================
# Request Schemas
# ==============================================================================


def _strip_content(v: str) -> str:
    v = v.strip()
    if not v:
        msg = "Content cannot be empty"
        raise ValueError(msg)
    return v


class AuthorPayload(BaseModel):
    """Author of an anonymous comment."""

    id: int | str | None = None
    document_id: str | None = None
    name: str | None = Field(None, max_length=200)
    username: str | None = Field(None, max_length=200)
    email: EmailStr | None = None
    avatar: str | None = Field(None, max_length=2000)


class CreateCommentRequest(BaseModel):
    """Request to create a new comment."""

    content: str = Field(..., min_length=1, max_length=10000)
    thread_of: int | str | None = Field(
        None, description="Numeric id or document id of the parent comment"
    )
    author: AuthorPayload | None = None
    approval_status: ApprovalStatus | None = None
    locale: str | None = Field(None, max_length=20)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _strip_content(v)


class UpdateCommentRequest(BaseModel):
    """Request to update a comment."""

    content: str = Field(..., min_length=1, max_length=10000)
    author: AuthorPayload | None = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _strip_content(v)


class ReportAbuseRequest(BaseModel):
    """Request to report a comment."""

    reason: ReportReason
    content: str = Field(..., min_length=1, max_length=1000)


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Response for a single comment.

    ``author`` holds only the fields that are not blocked by configuration.
    ``thread_of`` is the parent comment when it was loaded, its id otherwise.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: str
    content: str
    author: dict[str, Any]
    thread_of: "CommentResponse | int | None" = None
    related: str
    approval_status: ApprovalStatus
    removed: bool = False
    blocked: bool = False
    blocked_thread: bool = False
    is_admin_comment: bool = False
    locale: str | None = None
    created_at: datetime
    updated_at: datetime


class ReportResponse(BaseModel):
    """Response for a created abuse report."""

    id: UUID
    reason: ReportReason
    content: str
    resolved: bool = False
    created_at: datetime
    related: CommentResponse


# ==============================================================================
# Commentable entities
# ==============================================================================


class RegisterEntityRequest(BaseModel):
    """Request to open an entity for comments."""

    locales: list[str] = Field(
        default_factory=list, description="Accepted locales (empty means any)"
    )
    require_comments_approval: bool = False


class RelatedEntityResponse(BaseModel):
    """Commentable entity."""

    model_config = ConfigDict(from_attributes=True)

    uid: str
    related_id: str
    locales: list[str] = Field(default_factory=list)
    require_comments_approval: bool = False

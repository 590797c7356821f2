"""Pydantic schemas for authentication."""

from pydantic import BaseModel, Field


class AuthenticatedUser(BaseModel):
    """Caller identity extracted from a verified access token."""

    id: int = Field(..., description="Numeric user id (token subject)")
    document_id: str | None = None
    username: str | None = None
    email: str | None = None
    role: str | None = None

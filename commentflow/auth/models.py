"""Database models for user profiles.

Cassandra table definitions for:
- Users: profile data keyed by numeric id
- UsersByDocument: opaque document id -> numeric id
- UsersByRole: role -> user emails, for moderator notifications

Accounts and credentials are managed by the identity provider; this service
only reads profiles.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id BIGINT PRIMARY KEY,
    document_id TEXT,
    username TEXT,
    email TEXT,
    first_name TEXT,
    last_name TEXT,
    avatar_url TEXT,
    role TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USERS_BY_DOCUMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users_by_document (
    document_id TEXT PRIMARY KEY,
    id BIGINT
)
"""

USERS_BY_ROLE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users_by_role (
    role TEXT,
    id BIGINT,
    email TEXT,
    PRIMARY KEY ((role), id)
)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USERS_BY_DOCUMENT_TABLE_CQL,
    USERS_BY_ROLE_TABLE_CQL,
]


@dataclass
class UserProfile:
    """User profile entity."""

    id: int
    document_id: str | None
    username: str | None
    email: str | None
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None
    role: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "UserProfile":
        """Create UserProfile from Cassandra row."""
        created_at = row.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(
            id=row.id,
            document_id=row.document_id,
            username=row.username,
            email=row.email,
            first_name=row.first_name,
            last_name=row.last_name,
            avatar_url=row.avatar_url,
            role=row.role,
            created_at=created_at,
        )

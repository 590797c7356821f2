"""User profile service.

Read-only access to user profiles for:
- Author snapshots (extended profile lookup)
- Moderator notification recipients (emails by role)
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

from cassandra import DriverException

from commentflow.comments.contracts import (
    ExtendedProfile,
    Identity,
    Lookup,
    LookupStrategy,
)
from commentflow.core.logging import get_logger

from .models import UserProfile


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class ProfileService:
    """Profile lookups backed by Cassandra."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra driver session
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_id_by_document = self.session.prepare(
            f"SELECT id FROM {self.keyspace}.users_by_document WHERE document_id = ?"
        )
        self._get_users_by_role = self.session.prepare(
            f"SELECT email FROM {self.keyspace}.users_by_role WHERE role = ?"
        )

    # ==========================================================================
    # Profile lookup
    # ==========================================================================

    async def get_user_by_id(self, user_id: int) -> UserProfile | None:
        """Find user by numeric id."""
        rows = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = rows.one()
        return UserProfile.from_row(row) if row else None

    async def get_user_by_document_id(self, document_id: str) -> UserProfile | None:
        """Find user by opaque document id."""
        rows = await self.session.aexecute(self._get_id_by_document, [document_id])
        row = rows.one()
        return await self.get_user_by_id(row.id) if row else None

    async def find_profile(
        self, identity: Identity, strategy: LookupStrategy
    ) -> Lookup[ExtendedProfile]:
        """Look up the extended profile of an authenticated caller.

        ``PRIMARY`` goes through the document id, ``FALLBACK`` through the
        numeric id. Driver failures are reported as a failed lookup.
        """
        try:
            if strategy is LookupStrategy.PRIMARY and identity.document_id:
                user = await self.get_user_by_document_id(identity.document_id)
            elif identity.id is not None:
                user = await self.get_user_by_id(identity.id)
            else:
                user = None
        except DriverException as e:
            return Lookup.failed(str(e))

        if user is None:
            return Lookup.not_found()

        return Lookup.found(
            ExtendedProfile(
                document_id=user.document_id,
                first_name=user.first_name,
                last_name=user.last_name,
                avatar_url=user.avatar_url,
            )
        )

    # ==========================================================================
    # Moderators
    # ==========================================================================

    async def find_emails_by_roles(self, roles: Sequence[str]) -> list[str]:
        """Emails of every user holding one of ``roles``, deduplicated."""
        emails: dict[str, None] = {}
        for role in roles:
            rows = await self.session.aexecute(self._get_users_by_role, [role])
            for row in rows:
                if row.email:
                    emails[row.email] = None

        logger.debug("moderator_emails_loaded", roles=list(roles), count=len(emails))
        return list(emails)

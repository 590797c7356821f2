"""Author resolution.

Turns an authenticated identity or an anonymous author payload into the
author snapshot stored on a comment.
"""

from typing import Protocol

from commentflow.core.logging import get_logger

from .contracts import ExtendedProfile, Identity, IdentityLookup, LookupStrategy
from .errors import MissingAuthorError
from .models import AuthorSnapshot


logger = get_logger(__name__)


class AuthorPayload(Protocol):
    """Anonymous author data supplied in a request body."""

    id: int | str | None
    document_id: str | None
    name: str | None
    username: str | None
    email: str | None
    avatar: str | None


class AuthorResolver:
    """Resolve the author of a comment.

    An authenticated identity takes precedence over a payload. Profile lookup
    failures degrade to the token claims; they never block the caller.
    """

    def __init__(self, identity_lookup: IdentityLookup):
        self.identity_lookup = identity_lookup

    async def resolve(
        self,
        identity: Identity | None,
        payload: AuthorPayload | None = None,
    ) -> AuthorSnapshot:
        """Build the author snapshot.

        Raises:
            MissingAuthorError: Neither a valid identity nor a payload.
        """
        if identity is not None and identity.is_valid:
            profile = await self.find_profile(identity)
            return self._from_identity(identity, profile)

        if payload is not None:
            return self._from_payload(payload)

        raise MissingAuthorError

    async def find_profile(self, identity: Identity) -> ExtendedProfile | None:
        """Try the lookup strategies in order.

        A failed strategy moves on to the next one, a definitive answer
        (found or not found) ends the search.
        """
        strategies = [LookupStrategy.FALLBACK]
        if identity.document_id:
            strategies.insert(0, LookupStrategy.PRIMARY)

        for strategy in strategies:
            result = await self.identity_lookup.find_profile(identity, strategy)
            if not result.is_failed:
                return result.value
            logger.warning(
                "author_profile_lookup_failed",
                strategy=strategy.value,
                user_id=identity.id,
                error=result.error,
            )

        logger.warning("author_profile_unavailable", user_id=identity.id)
        return None

    @staticmethod
    def _from_identity(
        identity: Identity, profile: ExtendedProfile | None
    ) -> AuthorSnapshot:
        full_name = ""
        if profile is not None:
            full_name = f"{profile.first_name or ''} {profile.last_name or ''}".strip()

        return AuthorSnapshot(
            author_id=str(identity.id),
            author_document_id=identity.document_id
            or (profile.document_id if profile else None),
            author_name=full_name or identity.username,
            author_username=identity.username,
            author_email=identity.email,
            author_avatar=profile.avatar_url if profile else None,
            user_id=identity.id,
        )

    @staticmethod
    def _from_payload(payload: AuthorPayload) -> AuthorSnapshot:
        author_id = payload.id
        return AuthorSnapshot(
            author_id=str(author_id) if author_id not in (None, "") else None,
            author_document_id=payload.document_id,
            author_name=payload.name,
            author_username=payload.username or payload.name,
            author_email=payload.email,
            author_avatar=payload.avatar,
        )

"""Tests for AuthorResolver."""

import pytest

from commentflow.comments.authors import AuthorResolver
from commentflow.comments.contracts import (
    ExtendedProfile,
    Identity,
    Lookup,
    LookupStrategy,
)
from commentflow.comments.errors import MissingAuthorError
from commentflow.comments.schemas import AuthorPayload


@pytest.fixture
def resolver(identity_lookup) -> AuthorResolver:
    return AuthorResolver(identity_lookup)


@pytest.fixture
def profile() -> ExtendedProfile:
    return ExtendedProfile(
        document_id="user-doc-10",
        first_name="Ada",
        last_name="Lovelace",
        avatar_url="https://cdn.example.com/ada.png",
    )


class TestResolveIdentity:
    """Authenticated authors."""

    @pytest.mark.asyncio
    async def test_primary_lookup(self, resolver, identity_lookup, identity, profile):
        identity_lookup.results[LookupStrategy.PRIMARY] = Lookup.found(profile)

        snapshot = await resolver.resolve(identity)

        assert snapshot.author_id == "10"
        assert snapshot.user_id == 10
        assert snapshot.author_name == "Ada Lovelace"
        assert snapshot.author_avatar == "https://cdn.example.com/ada.png"
        assert snapshot.author_email == "ada@example.com"
        assert identity_lookup.calls == [LookupStrategy.PRIMARY]

    @pytest.mark.asyncio
    async def test_fallback_after_failure(
        self, resolver, identity_lookup, identity, profile
    ) -> None:
        identity_lookup.results[LookupStrategy.PRIMARY] = Lookup.failed("timeout")
        identity_lookup.results[LookupStrategy.FALLBACK] = Lookup.found(profile)

        snapshot = await resolver.resolve(identity)

        assert snapshot.author_name == "Ada Lovelace"
        assert identity_lookup.calls == [
            LookupStrategy.PRIMARY,
            LookupStrategy.FALLBACK,
        ]

    @pytest.mark.asyncio
    async def test_not_found_stops_search(self, resolver, identity_lookup, identity):
        snapshot = await resolver.resolve(identity)

        assert identity_lookup.calls == [LookupStrategy.PRIMARY]
        assert snapshot.author_name == "ada"

    @pytest.mark.asyncio
    async def test_all_strategies_fail(self, resolver, identity_lookup, identity):
        identity_lookup.results[LookupStrategy.PRIMARY] = Lookup.failed("timeout")
        identity_lookup.results[LookupStrategy.FALLBACK] = Lookup.failed("timeout")

        snapshot = await resolver.resolve(identity)

        assert snapshot.author_id == "10"
        assert snapshot.author_name == "ada"
        assert snapshot.author_avatar is None

    @pytest.mark.asyncio
    async def test_without_document_id_skips_primary(self, resolver, identity_lookup):
        await resolver.resolve(Identity(id=3, username="bob"))

        assert identity_lookup.calls == [LookupStrategy.FALLBACK]

    @pytest.mark.asyncio
    async def test_identity_wins_over_payload(self, resolver, identity) -> None:
        snapshot = await resolver.resolve(identity, AuthorPayload(id="anon-1"))

        assert snapshot.author_id == "10"
        assert not snapshot.is_anonymous


class TestResolvePayload:
    """Anonymous authors."""

    @pytest.mark.asyncio
    async def test_payload(self, resolver, identity_lookup) -> None:
        payload = AuthorPayload(
            id=7,
            name="Guest",
            email="guest@example.com",
            avatar="https://cdn.example.com/g.png",
        )

        snapshot = await resolver.resolve(None, payload)

        assert snapshot.author_id == "7"
        assert snapshot.author_username == "Guest"
        assert snapshot.author_avatar == "https://cdn.example.com/g.png"
        assert snapshot.is_anonymous
        assert identity_lookup.calls == []

    @pytest.mark.asyncio
    async def test_invalid_identity_uses_payload(self, resolver) -> None:
        snapshot = await resolver.resolve(Identity(id=None), AuthorPayload(id="a"))
        assert snapshot.author_id == "a"

    @pytest.mark.asyncio
    async def test_payload_without_id(self, resolver) -> None:
        snapshot = await resolver.resolve(None, AuthorPayload(name="Guest"))
        assert snapshot.author_id is None

    @pytest.mark.asyncio
    async def test_missing_author(self, resolver) -> None:
        with pytest.raises(MissingAuthorError):
            await resolver.resolve(None, None)

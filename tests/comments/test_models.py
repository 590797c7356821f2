"""Tests for comment models and references."""

from datetime import datetime
from unittest.mock import Mock

import pytest

from commentflow.comments.errors import InvalidRelationError
from commentflow.comments.models import (
    DOCUMENT_ID_LENGTH,
    ApprovalStatus,
    AuthorSnapshot,
    ById,
    ByOpaqueId,
    Comment,
    CommentFilter,
    RelatedEntity,
    create_comment,
    generate_document_id,
    parse_comment_ref,
    parse_relation,
)


class TestParseCommentRef:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (12, ById(12)),
            ("12", ById(12)),
            (" 12 ", ById(12)),
            ("abc123", ByOpaqueId("abc123")),
            ("12abc", ByOpaqueId("12abc")),
        ],
    )
    def test_parse(self, value, expected) -> None:
        assert parse_comment_ref(value) == expected


class TestParseRelation:
    def test_splits_on_last_colon(self) -> None:
        relation = parse_relation("api::article.article:12")
        assert relation.uid == "api::article.article"
        assert relation.related_id == "12"
        assert str(relation) == "api::article.article:12"

    @pytest.mark.parametrize("value", ["article", ":12", "api::article.article:"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(InvalidRelationError):
            parse_relation(value)


class TestCommentFilter:
    @pytest.fixture
    def comment(self) -> Comment:
        return create_comment(
            comment_id=1,
            content="x",
            author=AuthorSnapshot(author_id="1"),
            related="a:1",
            approval_status=ApprovalStatus.APPROVED,
            locale="en",
        )

    def test_related_scope(self, comment) -> None:
        assert CommentFilter(ById(1), related="a:1").matches(comment)
        assert not CommentFilter(ById(1), related="a:2").matches(comment)
        assert CommentFilter(ById(1)).matches(comment)

    def test_locale_only_when_requested(self, comment) -> None:
        assert CommentFilter(ById(1), locale="fr").matches(comment)
        assert not CommentFilter(ById(1), locale="fr", match_locale=True).matches(comment)
        assert CommentFilter(ById(1), locale="en", match_locale=True).matches(comment)


class TestRelatedEntity:
    def test_accepts_locale(self) -> None:
        entity = RelatedEntity(uid="a", related_id="1", locales={"en"})
        assert entity.accepts_locale("en")
        assert entity.accepts_locale(None)
        assert not entity.accepts_locale("fr")
        assert RelatedEntity(uid="a", related_id="1").accepts_locale("fr")

    def test_from_row(self) -> None:
        row = Mock(uid="a", related_id="1", locales=None, require_comments_approval=None)
        entity = RelatedEntity.from_row(row)
        assert entity.locales == set()
        assert entity.require_comments_approval is False


class TestComment:
    def test_from_row_makes_dates_aware(self) -> None:
        row = Mock(
            id=1,
            document_id="doc",
            content="x",
            author_id="1",
            author_document_id=None,
            author_name=None,
            author_username=None,
            author_email=None,
            author_avatar=None,
            author_user_id=None,
            related="a:1",
            approval_status="PENDING",
            thread_of=None,
            removed=None,
            blocked=None,
            blocked_thread=None,
            is_admin_comment=None,
            locale=None,
            created_at=datetime(2024, 1, 1),
            updated_at=None,
        )

        comment = Comment.from_row(row)

        assert comment.approval_status is ApprovalStatus.PENDING
        assert comment.removed is False
        assert comment.created_at.tzinfo is not None
        assert comment.updated_at == comment.created_at
        assert comment.author.is_anonymous

    def test_document_id(self) -> None:
        first, second = generate_document_id(), generate_document_id()
        assert len(first) == DOCUMENT_ID_LENGTH
        assert first != second

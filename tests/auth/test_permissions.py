"""Tests for auth permissions."""

import pytest

from commentflow.auth.permissions import (
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
)


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        """Roles should have correct string values."""
        assert UserRole.AUTHENTICATED.value == "authenticated"
        assert UserRole.MODERATOR.value == "moderator"
        assert UserRole.SUPER_ADMIN.value == "super-admin"

    def test_role_hierarchy(self) -> None:
        """Roles should have correct hierarchy levels."""
        assert ROLE_HIERARCHY[UserRole.AUTHENTICATED] == 0
        assert ROLE_HIERARCHY[UserRole.MODERATOR] == 1
        assert ROLE_HIERARCHY[UserRole.SUPER_ADMIN] == 2

    def test_all_roles_have_levels(self) -> None:
        """All UserRole members should have defined levels."""
        for role in UserRole:
            assert role in ROLE_HIERARCHY


class TestGetRoleLevel:
    """Tests for get_role_level function."""

    @pytest.mark.parametrize(
        "role,expected_level",
        [
            (UserRole.AUTHENTICATED, 0),
            (UserRole.MODERATOR, 1),
            (UserRole.SUPER_ADMIN, 2),
            ("moderator", 1),
            ("super-admin", 2),
        ],
    )
    def test_known_roles(self, role: UserRole | str, expected_level: int) -> None:
        """Should return correct level for enum and string roles."""
        assert get_role_level(role) == expected_level

    def test_invalid_role_returns_zero(self) -> None:
        """Invalid roles should return level 0."""
        assert get_role_level("invalid") == 0
        assert get_role_level("superadmin") == 0
        assert get_role_level(None) == 0


class TestHasPermission:
    """Tests for has_permission function."""

    def test_super_admin_has_all_permissions(self) -> None:
        """Super admin should have access to all role levels."""
        for role in UserRole:
            assert has_permission(UserRole.SUPER_ADMIN, role) is True

    def test_moderator_permissions(self) -> None:
        """Moderator reaches its own level but not above."""
        assert has_permission("moderator", UserRole.MODERATOR) is True
        assert has_permission("moderator", UserRole.SUPER_ADMIN) is False

    def test_authenticated_is_lowest(self) -> None:
        """Registered users cannot moderate."""
        assert has_permission(UserRole.AUTHENTICATED, UserRole.AUTHENTICATED) is True
        assert has_permission(UserRole.AUTHENTICATED, UserRole.MODERATOR) is False

    def test_missing_role(self) -> None:
        """A caller without role has the lowest level."""
        assert has_permission(None, UserRole.MODERATOR) is False

"""Role-based access control (RBAC) for Commentflow.

Hierarchical permission system:
- SUPER_ADMIN (level 2): Full moderation access, receives abuse reports
- MODERATOR (level 1): Manages commentable entities
- AUTHENTICATED (level 0): Registered user
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels.

    Higher level = more permissions.
    """

    AUTHENTICATED = "authenticated"  # Level 0: Registered user
    MODERATOR = "moderator"  # Level 1: Comment moderator
    SUPER_ADMIN = "super-admin"  # Level 2: System administrator


# Role hierarchy mapping (role -> permission level)
ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.AUTHENTICATED: 0,
    UserRole.MODERATOR: 1,
    UserRole.SUPER_ADMIN: 2,
}


def get_role_level(role: UserRole | str | None) -> int:
    """Get the permission level for a role.

    Unknown roles get the lowest level.
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return 0
    return ROLE_HIERARCHY.get(role, 0)


def has_permission(
    user_role: UserRole | str | None, required_role: UserRole | str
) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.SUPER_ADMIN, UserRole.MODERATOR)
        True
        >>> has_permission("authenticated", "moderator")
        False
    """
    return get_role_level(user_role) >= get_role_level(required_role)

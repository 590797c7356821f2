"""Authentication module: access tokens, roles and user profiles."""

from .dependencies import CurrentUser, ModeratorUser, OptionalUser
from .permissions import UserRole
from .schemas import AuthenticatedUser
from .service import ProfileService


__all__ = [
    "AuthenticatedUser",
    "CurrentUser",
    "ModeratorUser",
    "OptionalUser",
    "ProfileService",
    "UserRole",
]

"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from JWT
- Optional authentication for endpoints open to anonymous authors
- Role-based access control
"""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from commentflow.auth.permissions import UserRole, has_permission
from commentflow.auth.schemas import AuthenticatedUser
from commentflow.auth.security import decode_access_token
from commentflow.core.context import set_user_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_from_payload(payload: dict[str, Any]) -> AuthenticatedUser:
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        msg = "Token subject is not a user id"
        raise JWTError(msg) from e

    # Set user_id in context for logging
    set_user_id(user_id)

    return AuthenticatedUser(
        id=user_id,
        document_id=payload.get("document_id"),
        username=payload.get("username"),
        email=payload.get("email"),
        role=payload.get("role"),
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return _user_from_payload(decode_access_token(token))
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser | None:
    """Get current user if authenticated, None otherwise.

    An invalid token is treated like no token, so anonymous authors can
    still post.
    """
    if not token:
        return None

    try:
        return _user_from_payload(decode_access_token(token))
    except JWTError:
        return None


def require_permission(required_role: UserRole):
    """Create dependency requiring at least a permission level.

    Example:
        @router.put("/entities/{relation}")
        async def register(
            user: Annotated[
                AuthenticatedUser, Depends(require_permission(UserRole.MODERATOR))
            ],
        ):
            ...
    """

    async def permission_checker(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]

# Optional user (for endpoints that work both ways)
OptionalUser = Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)]

ModeratorUser = Annotated[
    AuthenticatedUser, Depends(require_permission(UserRole.MODERATOR))
]

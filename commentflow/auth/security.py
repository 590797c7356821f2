"""Access token handling.

Users sign in elsewhere; this service only verifies the access tokens they
carry. A token's subject is the numeric user id, the remaining claims are the
identity fields copied onto comments (document id, username, email, role).
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from commentflow.config.settings import get_settings


ACCESS_TOKEN_TYPE = "access"

IDENTITY_CLAIMS = ("document_id", "username", "email", "role")


def create_access_token(
    user_id: int,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Issue an access token for ``user_id``.

    Only the identity claims are kept; ``None`` values are left out.
    Used by tests and local tooling.
    """
    settings = get_settings()
    now = datetime.now(UTC)

    payload: dict[str, Any] = {
        name: claims[name] for name in IDENTITY_CLAIMS if claims.get(name) is not None
    }
    payload.update(
        {
            "sub": str(user_id),
            "iat": now,
            "exp": now
            + (
                expires_delta
                or timedelta(minutes=settings.auth_access_token_expire_minutes)
            ),
            "type": ACCESS_TOKEN_TYPE,
        }
    )

    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature, expiry and token type, and return the claims.

    Raises:
        JWTError: If token is invalid, expired, or not an access token
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        msg = f"Invalid token type: expected '{ACCESS_TOKEN_TYPE}'"
        raise JWTError(msg)

    return payload

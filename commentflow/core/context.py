"""Request context management using contextvars.

Each request gets a unique ID plus optional user and trace identifiers that
the logging processors pick up anywhere in the call stack.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return uuid4().hex


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def set_user_id(user_id: str | int | None) -> None:
    """Set the user ID for the current context."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def set_trace_id(trace_id: str | None) -> None:
    """Set the distributed trace ID for the current context."""
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Get the populated context variables as a dictionary."""
    context: dict[str, Any] = {}
    for key, var in (
        ("request_id", request_id_var),
        ("user_id", user_id_var),
        ("trace_id", trace_id_var),
    ):
        value = var.get()
        if value:
            context[key] = value
    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request to prevent leakage between requests.
    """
    request_id_var.set("")
    user_id_var.set(None)
    trace_id_var.set(None)


class RequestContext:
    """Context manager binding request identifiers outside of HTTP handling.

    Usage:
        with RequestContext(user_id=42):
            logger.info("config_refreshed")  # includes request_id, user_id
    """

    def __init__(
        self,
        request_id: str | None = None,
        user_id: str | int | None = None,
    ) -> None:
        self.request_id = request_id
        self.user_id = user_id
        self._request_token: Token[str] | None = None
        self._user_token: Token[str | None] | None = None

    def __enter__(self) -> "RequestContext":
        self._request_token = request_id_var.set(
            self.request_id or generate_request_id()
        )
        if self.user_id is not None:
            self._user_token = user_id_var.set(str(self.user_id))
        return self

    def __exit__(self, *_: object) -> None:
        if self._user_token is not None:
            user_id_var.reset(self._user_token)
        if self._request_token is not None:
            request_id_var.reset(self._request_token)

"""Comments configuration provider.

Values are seeded from application settings and overlaid with runtime
overrides stored in Redis (hash ``comments:config``, JSON values). Reads are
served from memory; a background task refreshes the overrides.
"""

import asyncio
import json
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from redis.exceptions import RedisError

from commentflow.core.logging import get_logger
from commentflow.core.redis import comments_config_key


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from commentflow.config import Settings


logger = get_logger(__name__)

T = TypeVar("T")


class ConfigKey(str, Enum):
    """Configuration keys read by the comment workflow."""

    APPROVAL_FLOW = "approval_flow"
    BLOCKED_AUTHOR_PROPS = "blocked_author_props"
    MODERATOR_ROLES = "moderator_roles"


def settings_defaults(settings: "Settings") -> dict[str, Any]:
    """Initial configuration values taken from settings."""
    return {
        ConfigKey.APPROVAL_FLOW.value: list(settings.comments_approval_flow),
        ConfigKey.BLOCKED_AUTHOR_PROPS.value: list(
            settings.comments_blocked_author_props
        ),
        ConfigKey.MODERATOR_ROLES.value: list(settings.comments_moderator_roles),
    }


class CachedConfigProvider:
    """Read-through configuration cache."""

    def __init__(
        self,
        defaults: dict[str, Any] | None = None,
        redis: "Redis | None" = None,
        refresh_seconds: float = 60.0,
    ):
        self._defaults = dict(defaults or {})
        self._values = dict(self._defaults)
        self.redis = redis
        self.refresh_seconds = refresh_seconds
        self._task: asyncio.Task | None = None

    @classmethod
    def from_settings(
        cls, settings: "Settings", redis: "Redis | None" = None
    ) -> "CachedConfigProvider":
        return cls(
            defaults=settings_defaults(settings),
            redis=redis,
            refresh_seconds=settings.comments_config_refresh_seconds,
        )

    def get(self, key: str, default: T) -> T:
        """Return the cached value for ``key`` or ``default``."""
        name = key.value if isinstance(key, ConfigKey) else key
        value = self._values.get(name)
        return default if value is None else value

    async def refresh(self) -> None:
        """Reload overrides from Redis.

        On failure the last known values are kept.
        """
        if not self.redis:
            return

        try:
            raw = await self.redis.hgetall(comments_config_key())
        except RedisError as e:
            logger.warning("comments_config_refresh_failed", error=str(e))
            return

        values = dict(self._defaults)
        for name, encoded in raw.items():
            try:
                values[name] = json.loads(encoded)
            except json.JSONDecodeError:
                logger.warning("comments_config_value_invalid", key=name)
        self._values = values
        logger.debug("comments_config_refreshed", overrides=len(raw))

    async def start(self) -> None:
        """Load overrides and start the periodic refresh."""
        await self.refresh()
        if self.redis and self._task is None:
            self._task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.refresh_seconds)
            await self.refresh()

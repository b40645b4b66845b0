"""Shared async Redis connection handling.

Base for the history store, the stream publisher and the stream
consumer. A component whose Redis is unreachable at startup stays
unconnected instead of failing the process; callers check is_available().
"""

from __future__ import annotations

import logging

import redis.asyncio as redis

from tasksearch.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 5


def create_redis_client(settings: Settings) -> redis.Redis:
    """Client for the configured Redis; responses are decoded to str."""
    password = settings.redis_password.get_secret_value() if settings.redis_password else None
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=password,
        decode_responses=True,
        socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
        socket_keepalive=True,
    )


class RedisConnection:
    """One redis.asyncio client per component. Inject redis_client in tests."""

    component = "Redis"

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self.settings = get_settings()
        self.redis = redis_client
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Create the client and ping it. No-op when already connected."""
        if self._connected:
            return
        client = create_redis_client(self.settings)
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("%s unavailable (%s); continuing without it", self.component, e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "%s connected to %s:%s/%s",
            self.component,
            self.settings.redis_host,
            self.settings.redis_port,
            self.settings.redis_db,
        )

    async def disconnect(self) -> None:
        if self.redis is None:
            return
        await self.redis.aclose()
        self.redis = None
        self._connected = False
        logger.info("%s disconnected", self.component)

    async def _reconnect(self) -> bool:
        """Replace a dropped client with a fresh one. True if that worked."""
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing dropped %s client", self.component)
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

"""Process-scoped Redis client shared by the usage, profile and telemetry stores.

The client is created on first use and reused across requests handled by the
same process. Connection-level failures invalidate it so the next call
rebuilds the connection pool from scratch.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

import redis
from loguru import logger

from repvault.config.settings import settings
from repvault.core.errors import InternalError


class RedisClientProvider:
    """Lazily-initialized Redis client with refetch-on-failure invalidation."""

    def __init__(self, url: str | None = None) -> None:
        self._url = url
        self._client: redis.Redis | None = None
        self._lock = threading.Lock()

    def get(self) -> redis.Redis:
        client = self._client
        if client is not None:
            return client
        with self._lock:
            if self._client is None:
                url = self._url or settings.redis_url
                self._client = redis.from_url(url, decode_responses=True)
                logger.debug("Redis client created", event="redis_client_created")
            return self._client

    def invalidate(self) -> None:
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            try:
                client.close()
            except redis.RedisError as e:
                logger.warning("Failed to close invalidated Redis client", error=str(e))
            logger.info("Redis client invalidated", event="redis_client_invalidated")

    @contextmanager
    def translate_errors(self, operation: str) -> Iterator[None]:
        """Map Redis failures to InternalError, dropping the client on connection loss."""
        try:
            yield
        except (redis.ConnectionError, redis.TimeoutError) as e:
            self.invalidate()
            logger.error(f"Redis connection failure during {operation}", error=str(e), event="redis_connection_failed")
            raise InternalError("Storage is temporarily unavailable.") from e
        except redis.RedisError as e:
            logger.error(f"Redis error during {operation}", error=str(e), event="redis_error")
            raise InternalError("An unexpected storage error occurred.") from e


redis_provider = RedisClientProvider()

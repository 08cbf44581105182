"""Redis-backed usage records shared by every handler process.

Each identity owns one hash ``usage:{identity_id}`` with fields
``requestCount``, ``windowStartEpochMs`` and ``tier``. Both mutations are
single Redis commands, so each one is atomic on its own:

- reset: HSET with all three fields
- increment: HINCRBY, which treats a missing field as 0
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from repvault.config.settings import settings
from repvault.core.redis_client import RedisClientProvider, redis_provider
from repvault.identity.types import Tier

REQUEST_COUNT_FIELD = "requestCount"
WINDOW_START_FIELD = "windowStartEpochMs"
TIER_FIELD = "tier"


class UsageRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    request_count: int = Field(default=0, ge=0, alias=REQUEST_COUNT_FIELD)
    window_start_epoch_ms: int = Field(default=0, alias=WINDOW_START_FIELD)
    tier: Tier | None = None


class UsageStore(Protocol):
    def get(self, identity_id: str) -> UsageRecord | None: ...

    def reset(self, identity_id: str, now_ms: int, tier: Tier) -> None: ...

    def increment(self, identity_id: str) -> int: ...


class RedisUsageStore:
    def __init__(self, provider: RedisClientProvider = redis_provider, key_prefix: str | None = None) -> None:
        self._provider = provider
        self._key_prefix = key_prefix or settings.usage_key_prefix

    def _key(self, identity_id: str) -> str:
        return f"{self._key_prefix}:{identity_id}"

    def get(self, identity_id: str) -> UsageRecord | None:
        with self._provider.translate_errors("usage read"):
            fields = self._provider.get().hgetall(self._key(identity_id))
        if not fields:
            return None
        tier = fields.get(TIER_FIELD)
        return UsageRecord(
            id=identity_id,
            request_count=int(fields.get(REQUEST_COUNT_FIELD) or 0),
            window_start_epoch_ms=int(fields.get(WINDOW_START_FIELD) or 0),
            tier=Tier(tier) if tier in {t.value for t in Tier} else None,
        )

    def reset(self, identity_id: str, now_ms: int, tier: Tier) -> None:
        with self._provider.translate_errors("usage reset"):
            self._provider.get().hset(
                self._key(identity_id),
                mapping={
                    REQUEST_COUNT_FIELD: 1,
                    WINDOW_START_FIELD: now_ms,
                    TIER_FIELD: tier.value,
                },
            )

    def increment(self, identity_id: str) -> int:
        with self._provider.translate_errors("usage increment"):
            return int(self._provider.get().hincrby(self._key(identity_id), REQUEST_COUNT_FIELD, 1))

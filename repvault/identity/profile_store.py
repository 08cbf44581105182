"""Read-only access to user profile records.

Profiles are owned by the account service and stored as Redis hashes
(``profile:{user_id}``). This module only reads the subscription fields
needed to derive an entitlement tier.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from repvault.config.settings import settings
from repvault.core.redis_client import RedisClientProvider, redis_provider


class ProfileRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    subscription_tier: str | None = Field(default=None, alias="subscriptionTier")
    plan: str | None = None
    is_premium: bool | None = Field(default=None, alias="isPremium")

    @field_validator("is_premium", mode="before")
    @classmethod
    def parse_premium_flag(cls, value: object) -> bool | None:
        # Hash fields come back as strings; unknown spellings mean "not set".
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in {"true", "1", "yes"}:
                return True
            if normalized in {"false", "0", "no"}:
                return False
        return None


class ProfileStore(Protocol):
    def get(self, user_id: str) -> ProfileRecord | None: ...


class RedisProfileStore:
    def __init__(self, provider: RedisClientProvider = redis_provider, key_prefix: str | None = None) -> None:
        self._provider = provider
        self._key_prefix = key_prefix or settings.profile_key_prefix

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}:{user_id}"

    def get(self, user_id: str) -> ProfileRecord | None:
        with self._provider.translate_errors("profile lookup"):
            fields = self._provider.get().hgetall(self._key(user_id))
        if not fields:
            return None
        return ProfileRecord.model_validate({**fields, "id": user_id})

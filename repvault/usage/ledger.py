"""Per-identity request quota over a fixed window.

The ledger is best-effort: reset and increment are each atomic, but two
requests racing across a window boundary may both be admitted. Over-admission
is bounded by the number of concurrent racers.
"""

from __future__ import annotations

from loguru import logger

from repvault.config.settings import settings
from repvault.core.clock import Clock, system_clock
from repvault.core.errors import RateLimitExceeded
from repvault.identity.types import Tier
from repvault.usage.store import UsageStore


class QuotaLedger:
    def __init__(
        self,
        store: UsageStore,
        clock: Clock = system_clock,
        window_ms: int | None = None,
        free_limit: int | None = None,
        premium_limit: int | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self.window_ms = window_ms or settings.rate_limit_window_ms
        self.free_limit = free_limit or settings.free_user_limit
        self.premium_limit = premium_limit or settings.premium_user_limit

    def limit_for(self, tier: Tier) -> int:
        return self.premium_limit if tier == Tier.PREMIUM else self.free_limit

    def check_and_consume(self, identity_id: str, tier: Tier) -> None:
        """Consume one request unit for identity_id or raise RateLimitExceeded.

        An expired or missing window is restarted with the current request
        already counted. Rejections never write to the store.
        """
        now = self._clock.now_ms()
        record = self._store.get(identity_id)
        limit = self.limit_for(tier)
        current_count = record.request_count if record else 0
        window_start = record.window_start_epoch_ms if record else 0

        if window_start == 0 or now - window_start >= self.window_ms:
            self._store.reset(identity_id, now, tier)
            logger.debug("Quota window started", user_id=identity_id, tier=tier.value, event="quota_window_reset")
            return

        if current_count >= limit:
            logger.info(
                "Rate limit exceeded",
                event="rate_limit_exceeded",
                userId=identity_id,
                tier=tier.value,
                limit=limit,
                currentCount=current_count,
                windowStartEpochMs=window_start,
                nowEpochMs=now,
                windowMs=self.window_ms,
            )
            hours = self.window_ms / 3_600_000
            window_label = f"{hours:g}-hour" if hours >= 1 else f"{self.window_ms // 1000}-second"
            raise RateLimitExceeded(
                f"Rate limit exceeded for this {window_label} window.",
                details={
                    "limit": limit,
                    "windowMs": self.window_ms,
                    "retryAfterMs": max(window_start + self.window_ms - now, 0),
                },
            )

        self._store.increment(identity_id)

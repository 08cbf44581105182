"""Usage governance facade consumed by the request handler.

Composes identity resolution, quota accounting and migration telemetry
behind the four operations the handler needs. Instances are cheap; the
process-wide one is built lazily by get_governance_service().
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from repvault.core.clock import Clock, system_clock
from repvault.identity.claims import Claims
from repvault.identity.profile_store import ProfileStore, RedisProfileStore
from repvault.identity.resolver import IdentityResolver
from repvault.identity.types import IdentityContext, Tier
from repvault.telemetry.aggregator import TelemetryAggregator
from repvault.telemetry.ingestor import TelemetryIngestor
from repvault.telemetry.models import MigrationStats
from repvault.telemetry.store import MigrationStatusStore, RedisMigrationStatusStore
from repvault.usage.ledger import QuotaLedger
from repvault.usage.store import RedisUsageStore, UsageStore


class GovernanceService:
    def __init__(
        self,
        profile_store: ProfileStore,
        usage_store: UsageStore,
        migration_store: MigrationStatusStore,
        clock: Clock = system_clock,
        require_trusted_identity: bool | None = None,
    ) -> None:
        self.resolver = IdentityResolver(profile_store, require_trusted_identity=require_trusted_identity)
        self.ledger = QuotaLedger(usage_store, clock=clock)
        self.ingestor = TelemetryIngestor(migration_store)
        self.aggregator = TelemetryAggregator(migration_store, clock=clock)

    def resolve_identity(self, claims: Claims | None, caller_supplied_id: object = None) -> IdentityContext:
        return self.resolver.resolve(claims, caller_supplied_id)

    def check_and_consume_quota(self, identity_id: str, tier: Tier) -> None:
        self.ledger.check_and_consume(identity_id, tier)

    def ingest_migration_report(self, event: Mapping[str, Any], claims: Claims | None = None) -> dict[str, bool]:
        return self.ingestor.report(event, claims)

    def get_migration_stats(self, claims: Claims | None, days: object = None) -> MigrationStats:
        return self.aggregator.get_stats(claims, days)


_service: GovernanceService | None = None
_service_lock = threading.Lock()


def get_governance_service() -> GovernanceService:
    """Process-scoped service backed by the shared Redis client."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = GovernanceService(
                    profile_store=RedisProfileStore(),
                    usage_store=RedisUsageStore(),
                    migration_store=RedisMigrationStatusStore(),
                )
    return _service

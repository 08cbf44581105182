from __future__ import annotations

from collections import Counter
from collections.abc import Iterator

from loguru import logger

from repvault.core.clock import Clock, system_clock
from repvault.core.errors import Forbidden
from repvault.identity.claims import Claims, is_admin
from repvault.telemetry.models import MigrationStats, MigrationStatusRecord
from repvault.telemetry.store import MigrationStatusStore
from repvault.telemetry.validation import parse_iso_timestamp, parse_stats_days

DAY_MS = 24 * 60 * 60 * 1000


def schema_version_key(version: float | int) -> str:
    # 2.0 and 2 are the same schema version
    if isinstance(version, float) and version.is_integer():
        return str(int(version))
    return str(version)


class TelemetryAggregator:
    """Admin-only rollup of migration status over a trailing window."""

    def __init__(self, store: MigrationStatusStore, clock: Clock = system_clock) -> None:
        self._store = store
        self._clock = clock

    def iter_records(self) -> Iterator[MigrationStatusRecord]:
        cursor: int | None = None
        while True:
            page = self._store.scan_page(cursor)
            yield from page.records
            if page.next_cursor is None:
                return
            cursor = page.next_cursor

    def get_stats(self, claims: Claims | None, days: object = None) -> MigrationStats:
        """Summarize installs seen within the last ``days`` days.

        Raises:
            Forbidden: Claims do not carry admin privilege (checked before days)
            ValidationError: days is present but not a positive number
        """
        if not is_admin(claims):
            raise Forbidden("Admin privileges are required.")

        window_days = parse_stats_days(days)
        cutoff_ms = self._clock.now_ms() - window_days * DAY_MS

        active = 0
        migrated = 0
        distribution: Counter[str] = Counter()
        for record in self.iter_records():
            seen_at = parse_iso_timestamp(record.last_seen_at)
            if seen_at is None or seen_at.timestamp() * 1000 < cutoff_ms:
                continue
            active += 1
            if record.is_good_to_go:
                migrated += 1
            distribution[schema_version_key(record.schema_version)] += 1

        percent = 0 if active == 0 else round(migrated / active * 100, 2)
        stats = MigrationStats(
            active_installs=active,
            migrated_installs=migrated,
            percent_migrated=percent,
            schema_distribution=dict(distribution),
        )
        logger.info(
            "Migration stats computed",
            event="migration_stats_computed",
            days=window_days,
            active_installs=active,
            migrated_installs=migrated,
        )
        return stats

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from loguru import logger

from repvault.config.settings import settings
from repvault.core.errors import ConditionalCheckFailed
from repvault.identity.claims import Claims, subject_from_claims
from repvault.telemetry.models import MigrationReport, MigrationStatusRecord, install_primary_key
from repvault.telemetry.store import MigrationStatusStore
from repvault.telemetry.validation import parse_iso_timestamp, validate_migration_report

SECONDS_PER_DAY = 86_400


class TelemetryIngestor:
    """Records self-reported client migration status.

    The upsert is idempotent: duplicates and out-of-order (older) reports are
    acknowledged with ``{"ok": True}`` and leave the stored record untouched.
    """

    def __init__(self, store: MigrationStatusStore, ttl_days: int | None = None) -> None:
        self._store = store
        self._ttl_days = settings.migration_status_ttl_days if ttl_days is None else ttl_days

    def expiry_epoch_seconds(self, timestamp: str) -> int | None:
        if self._ttl_days <= 0:
            return None
        event_time = parse_iso_timestamp(timestamp)
        if event_time is None:
            return None
        return math.floor(event_time.timestamp() + self._ttl_days * SECONDS_PER_DAY)

    def build_record(self, report: MigrationReport, claims: Claims | None) -> MigrationStatusRecord:
        return MigrationStatusRecord(
            pk=install_primary_key(report.install_id),
            install_id=report.install_id,
            user_id=subject_from_claims(claims),
            platform=report.platform,
            app_version=report.app_version,
            schema_version=report.schema_version,
            latest_schema_version=report.latest_schema_version,
            is_good_to_go=report.schema_version >= report.latest_schema_version,
            last_seen_at=report.timestamp,
            ttl=self.expiry_epoch_seconds(report.timestamp),
        )

    def report(self, event: Mapping[str, Any], claims: Claims | None = None) -> dict[str, bool]:
        """Validate and record one migration status report.

        Raises:
            ValidationError: One or more fields are missing or invalid
            InternalError: The store failed for a reason other than a stale write
        """
        record = self.build_record(validate_migration_report(event), claims)

        try:
            self._store.put_if_newer(record)
        except ConditionalCheckFailed:
            logger.debug(
                "Stale or duplicate migration report ignored",
                event="migration_report_stale",
                install_id=record.install_id,
                last_seen_at=record.last_seen_at,
            )
            return {"ok": True}

        logger.info(
            "Migration report recorded",
            event="migration_report_recorded",
            install_id=record.install_id,
            platform=record.platform.value,
            schema_version=record.schema_version,
            is_good_to_go=record.is_good_to_go,
        )
        return {"ok": True}

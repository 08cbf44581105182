"""Migration status records in Redis.

One JSON document per install under ``migration_status:INSTALL#{install_id}``.
Writes are conditional on the reported timestamp (last write wins by client
time, not arrival order) and use WATCH/MULTI so the comparison and the write
happen atomically with respect to other writers of the same key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import redis
from loguru import logger

from repvault.config.settings import settings
from repvault.core.errors import ConditionalCheckFailed
from repvault.core.redis_client import RedisClientProvider, redis_provider
from repvault.telemetry.models import INSTALL_KEY_PREFIX, MigrationStatusRecord, install_primary_key
from repvault.telemetry.validation import parse_iso_timestamp


@dataclass(frozen=True)
class ScanPage:
    records: list[MigrationStatusRecord]
    next_cursor: int | None


class MigrationStatusStore(Protocol):
    def get(self, install_id: str) -> MigrationStatusRecord | None: ...

    def put_if_newer(self, record: MigrationStatusRecord) -> None: ...

    def scan_page(self, cursor: int | None = None) -> ScanPage: ...


def is_newer(candidate: MigrationStatusRecord, existing: MigrationStatusRecord | None) -> bool:
    if existing is None:
        return True
    candidate_time = parse_iso_timestamp(candidate.last_seen_at)
    existing_time = parse_iso_timestamp(existing.last_seen_at)
    if existing_time is None:
        return True
    return candidate_time is not None and candidate_time > existing_time


class RedisMigrationStatusStore:
    def __init__(
        self,
        provider: RedisClientProvider = redis_provider,
        key_prefix: str | None = None,
        page_size: int | None = None,
    ) -> None:
        self._provider = provider
        self._key_prefix = key_prefix or settings.migration_status_key_prefix
        self._page_size = page_size or settings.migration_scan_page_size

    def _key(self, install_id: str) -> str:
        return f"{self._key_prefix}:{install_primary_key(install_id)}"

    def get(self, install_id: str) -> MigrationStatusRecord | None:
        with self._provider.translate_errors("migration status read"):
            raw = self._provider.get().get(self._key(install_id))
        return MigrationStatusRecord.model_validate_json(raw) if raw else None

    def put_if_newer(self, record: MigrationStatusRecord) -> None:
        """Write record unless the stored one has an equal or later lastSeenAt.

        Raises:
            ConditionalCheckFailed: Stored record is as new or newer
            InternalError: Redis failure
        """
        key = self._key(record.install_id)
        document = record.model_dump_json(by_alias=True)

        def apply(pipe: redis.client.Pipeline) -> None:
            raw = pipe.get(key)
            existing = None
            if raw:
                try:
                    existing = MigrationStatusRecord.model_validate_json(raw)
                except ValueError:
                    logger.warning("Overwriting unreadable migration status record", key=key)
            if not is_newer(record, existing):
                raise ConditionalCheckFailed(key)
            pipe.multi()
            pipe.set(key, document)
            if record.ttl is not None:
                pipe.expireat(key, record.ttl)
            else:
                pipe.persist(key)

        with self._provider.translate_errors("migration status write"):
            self._provider.get().transaction(apply, key)

    def scan_page(self, cursor: int | None = None) -> ScanPage:
        """Read one page of records; next_cursor is None once the keyspace is exhausted."""
        with self._provider.translate_errors("migration status scan"):
            client = self._provider.get()
            next_cursor, keys = client.scan(
                cursor=cursor or 0,
                match=f"{self._key_prefix}:{INSTALL_KEY_PREFIX}*",
                count=self._page_size,
            )
            documents = client.mget(keys) if keys else []

        records = []
        for key, raw in zip(keys, documents, strict=True):
            # Expired between SCAN and MGET
            if raw is None:
                continue
            try:
                records.append(MigrationStatusRecord.model_validate_json(raw))
            except ValueError as e:
                logger.warning("Skipping unreadable migration status record", key=key, error=str(e))

        return ScanPage(records=records, next_cursor=int(next_cursor) or None)

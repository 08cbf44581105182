"""Root conftest for all tests.

Provides in-memory implementations of the store protocols and a controllable
clock so governance logic can be exercised without a Redis server.
"""

from __future__ import annotations

import pytest

from repvault.core.errors import ConditionalCheckFailed
from repvault.identity.profile_store import ProfileRecord
from repvault.identity.types import Tier
from repvault.services.governance import GovernanceService
from repvault.telemetry.models import MigrationStatusRecord
from repvault.telemetry.store import ScanPage, is_newer
from repvault.usage.store import UsageRecord

# 2026-02-21T18:20:00.000Z
NOW_MS = 1_771_698_000_000


class FakeClock:
    def __init__(self, now_ms: int = NOW_MS) -> None:
        self.now = now_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class InMemoryProfileStore:
    def __init__(self) -> None:
        self.profiles: dict[str, ProfileRecord] = {}
        self.lookups: list[str] = []

    def add(self, user_id: str, **fields) -> None:
        self.profiles[user_id] = ProfileRecord.model_validate({"id": user_id, **fields})

    def get(self, user_id: str) -> ProfileRecord | None:
        self.lookups.append(user_id)
        return self.profiles.get(user_id)


class InMemoryUsageStore:
    def __init__(self) -> None:
        self.records: dict[str, UsageRecord] = {}
        self.writes = 0

    def get(self, identity_id: str) -> UsageRecord | None:
        record = self.records.get(identity_id)
        return record.model_copy() if record else None

    def reset(self, identity_id: str, now_ms: int, tier: Tier) -> None:
        self.writes += 1
        self.records[identity_id] = UsageRecord(
            id=identity_id, request_count=1, window_start_epoch_ms=now_ms, tier=tier
        )

    def increment(self, identity_id: str) -> int:
        self.writes += 1
        record = self.records.get(identity_id) or UsageRecord(id=identity_id)
        record.request_count += 1
        self.records[identity_id] = record
        return record.request_count


class InMemoryMigrationStore:
    """Pages through records in insertion order, page_size per scan call."""

    def __init__(self, page_size: int = 2) -> None:
        self.records: dict[str, MigrationStatusRecord] = {}
        self.page_size = page_size
        self.scan_calls: list[int | None] = []

    def get(self, install_id: str) -> MigrationStatusRecord | None:
        return self.records.get(install_id)

    def put_if_newer(self, record: MigrationStatusRecord) -> None:
        if not is_newer(record, self.records.get(record.install_id)):
            raise ConditionalCheckFailed(record.pk)
        self.records[record.install_id] = record

    def scan_page(self, cursor: int | None = None) -> ScanPage:
        self.scan_calls.append(cursor)
        start = cursor or 0
        items = list(self.records.values())
        end = start + self.page_size
        return ScanPage(records=items[start:end], next_cursor=end if end < len(items) else None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def usage_store() -> InMemoryUsageStore:
    return InMemoryUsageStore()


@pytest.fixture
def migration_store() -> InMemoryMigrationStore:
    return InMemoryMigrationStore()


@pytest.fixture
def service(clock, profile_store, usage_store, migration_store) -> GovernanceService:
    return GovernanceService(
        profile_store=profile_store,
        usage_store=usage_store,
        migration_store=migration_store,
        clock=clock,
        require_trusted_identity=False,
    )


@pytest.fixture
def admin_claims() -> dict:
    return {"sub": "admin-1", "cognito:groups": ["admin"]}

"""Input validation for migration telemetry actions.

Report validation never fails fast: every failing field is collected and
returned together in a single ValidationError.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from repvault.core.errors import ValidationError
from repvault.telemetry.models import MigrationReport, Platform

DEFAULT_STATS_DAYS = 30


def parse_iso_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime (naive means UTC)."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def to_canonical_iso_utc(value: datetime) -> str:
    """Serialize as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (millisecond precision)."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_canonical_iso_utc(value: object) -> bool:
    """True only if value survives a parse/serialize round trip unchanged.

    ``2026-02-21T18:20:00.000Z`` is canonical. ``2026-02-21T18:20:00Z``
    (no milliseconds), offsets other than ``Z`` and sub-millisecond
    precision are not.
    """
    if not isinstance(value, str):
        return False
    parsed = parse_iso_timestamp(value)
    if parsed is None:
        return False
    return to_canonical_iso_utc(parsed) == value


def _is_non_empty_string(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_finite_number(value: object) -> bool:
    # bool is an int subclass but is not a number on the wire
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


def validate_migration_report(body: Mapping[str, Any]) -> MigrationReport:
    details: dict[str, str] = {}

    if not _is_non_empty_string(body.get("installId")):
        details["installId"] = "installId must be a non-empty string."
    platform = body.get("platform")
    if not isinstance(platform, str) or platform not in {p.value for p in Platform}:
        details["platform"] = "platform must be ios or android."
    if not _is_non_empty_string(body.get("appVersion")):
        details["appVersion"] = "appVersion must be a non-empty string."
    if not _is_finite_number(body.get("schemaVersion")):
        details["schemaVersion"] = "schemaVersion must be a number."
    if not _is_finite_number(body.get("latestSchemaVersion")):
        details["latestSchemaVersion"] = "latestSchemaVersion must be a number."
    if not is_canonical_iso_utc(body.get("timestamp")):
        details["timestamp"] = "timestamp must be a canonical ISO UTC string."

    if details:
        raise ValidationError(details)

    return MigrationReport(
        install_id=body["installId"].strip(),
        platform=Platform(body["platform"]),
        app_version=body["appVersion"].strip(),
        schema_version=body["schemaVersion"],
        latest_schema_version=body["latestSchemaVersion"],
        timestamp=body["timestamp"],
    )


def parse_stats_days(raw_days: object) -> int:
    """Whole days for the stats window; fractional values are floored."""
    if raw_days is None:
        return DEFAULT_STATS_DAYS
    if not _is_finite_number(raw_days) or raw_days <= 0:
        raise ValidationError({"days": "days must be a positive number."})
    return math.floor(raw_days)

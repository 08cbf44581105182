from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

INSTALL_KEY_PREFIX = "INSTALL#"


class Platform(StrEnum):
    IOS = "ios"
    ANDROID = "android"


def install_primary_key(install_id: str) -> str:
    return f"{INSTALL_KEY_PREFIX}{install_id}"


class MigrationReport(BaseModel):
    """A validated client migration status report."""

    install_id: str
    platform: Platform
    app_version: str
    schema_version: float | int
    latest_schema_version: float | int
    timestamp: str


class MigrationStatusRecord(BaseModel):
    """Stored migration status, one per install."""

    model_config = ConfigDict(populate_by_name=True)

    pk: str
    install_id: str = Field(alias="installId")
    user_id: str | None = Field(default=None, alias="userId")
    platform: Platform
    app_version: str = Field(alias="appVersion")
    schema_version: float | int = Field(alias="schemaVersion")
    latest_schema_version: float | int = Field(alias="latestSchemaVersion")
    is_good_to_go: bool = Field(alias="isGoodToGo")
    last_seen_at: str = Field(alias="lastSeenAt")
    ttl: int | None = None


class MigrationStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    active_installs: int = Field(alias="activeInstalls")
    migrated_installs: int = Field(alias="migratedInstalls")
    percent_migrated: float = Field(alias="percentMigrated")
    schema_distribution: dict[str, int] = Field(alias="schemaDistribution")

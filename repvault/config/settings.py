from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

EIGHT_HOURS_MS = 8 * 60 * 60 * 1000


class Settings(BaseSettings):
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")

    rate_limit_window_ms: int = Field(
        default=EIGHT_HOURS_MS,
        validation_alias="RATE_LIMIT_WINDOW_MS",
        description="Length of the quota window shared by all tiers",
    )
    free_user_limit: int = Field(default=2, validation_alias="FREE_USER_LIMIT")
    premium_user_limit: int = Field(default=25, validation_alias="PREMIUM_USER_LIMIT")
    require_trusted_identity: bool = Field(
        default=False,
        validation_alias="REQUIRE_TRUSTED_IDENTITY",
        description="Reject generation requests that carry no verified subject claim",
    )

    migration_status_ttl_days: int = Field(
        default=0,
        validation_alias="MIGRATION_STATUS_TTL_DAYS",
        description="Days after the reported timestamp before a migration record expires (0 disables expiry)",
    )
    migration_scan_page_size: int = Field(default=500, validation_alias="MIGRATION_SCAN_PAGE_SIZE")

    usage_key_prefix: str = Field(default="usage", validation_alias="USAGE_KEY_PREFIX")
    profile_key_prefix: str = Field(default="profile", validation_alias="PROFILE_KEY_PREFIX")
    migration_status_key_prefix: str = Field(default="migration_status", validation_alias="MIGRATION_STATUS_KEY_PREFIX")

    auth_secret_key: str = Field(default="", validation_alias="AUTH_SECRET_KEY")
    auth_algorithm: str = Field(default="HS256", validation_alias="AUTH_ALGORITHM")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("rate_limit_window_ms", "free_user_limit", "premium_user_limit", "migration_scan_page_size")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("migration_status_ttl_days")
    @classmethod
    def validate_ttl_days(cls, value: int) -> int:
        if value < 0:
            raise ValueError("MIGRATION_STATUS_TTL_DAYS must be >= 0 (0 disables expiry)")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("auth_secret_key")
    @classmethod
    def validate_auth_secret(cls, value: str) -> str:
        if not value:
            logger.warning(
                "AUTH_SECRET_KEY is not set. Bearer tokens will be decoded WITHOUT signature verification. "
                "Set AUTH_SECRET_KEY in production."
            )
        return value


settings = Settings()

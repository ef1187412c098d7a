from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from pydantic import Field, field_validator
from core import constants


class Settings(BaseSettings):
    """
    Immutable run configuration.
    Built once by the entrypoint and handed to every component.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # --- Endpoints ---
    DISCORD_WEBHOOK_URL: str = Field(..., description="Discord webhook URL")
    AO3_SEARCH_URL: str = Field(..., description="AO3 listing/search URL to poll")
    DISCORD_ADMIN_ROLE_ID: Optional[str] = Field(
        None, description="Role pinged on the zero-works alert"
    )

    # --- State ---
    STATE_FILE: str = Field(constants.DEFAULT_STATE_FILE, description="Watermark file path")

    # --- Source ---
    ITEM_BASE_URL: str = Field(constants.DEFAULT_ITEM_BASE_URL)
    USER_AGENT: str = Field(constants.DEFAULT_USER_AGENT)

    # --- Fetcher ---
    FETCH_MAX_ATTEMPTS: int = Field(constants.DEFAULT_FETCH_MAX_ATTEMPTS)
    FETCH_TIMEOUT_BASE: float = Field(constants.DEFAULT_FETCH_TIMEOUT_BASE)
    FETCH_TIMEOUT_CAP: float = Field(constants.DEFAULT_FETCH_TIMEOUT_CAP)
    FETCH_BACKOFF_BASE: float = Field(constants.DEFAULT_FETCH_BACKOFF_BASE)
    FETCH_JITTER_MAX: float = Field(constants.DEFAULT_FETCH_JITTER_MAX)

    # --- Enrichment ---
    ENRICH_CONCURRENCY: int = Field(constants.DEFAULT_ENRICH_CONCURRENCY)
    ENRICH_MAX_ENTRIES: int = Field(
        constants.DEFAULT_ENRICH_MAX_ENTRIES,
        description="Item pages are fetched only when fewer new works than this",
    )
    ENRICH_DELAY: float = Field(constants.DEFAULT_ENRICH_DELAY)

    # --- Discord ---
    DISCORD_BATCH_THRESHOLD: int = Field(constants.DEFAULT_DISCORD_BATCH_THRESHOLD)
    DISCORD_MAX_LINES_PER_MESSAGE: int = Field(constants.DEFAULT_DISCORD_MAX_LINES_PER_MESSAGE)
    DISCORD_MESSAGE_DELAY: float = Field(constants.DEFAULT_DISCORD_MESSAGE_DELAY)
    DISCORD_MAX_ATTEMPTS: int = Field(constants.DEFAULT_DISCORD_MAX_ATTEMPTS)
    DISCORD_RETRY_MARGIN: float = Field(constants.DEFAULT_DISCORD_RETRY_MARGIN)

    # --- Logging ---
    LOG_LEVEL: str = Field(constants.DEFAULT_LOG_LEVEL, description="Logging level")
    LOG_FILE: str = Field(constants.DEFAULT_LOG_FILE, description="Log file path")
    LOG_FORMAT: str = Field(constants.DEFAULT_LOG_FORMAT, description="Log format (text/json)")
    LOG_MAX_BYTES: int = Field(constants.DEFAULT_LOG_MAX_BYTES, description="Max log file size")
    LOG_BACKUP_COUNT: int = Field(constants.DEFAULT_LOG_BACKUP_COUNT, description="Log backup count")
    LOG_TIMEZONE: str = Field(constants.DEFAULT_LOG_TIMEZONE, description="Timezone for log timestamps")

    @field_validator("DISCORD_WEBHOOK_URL", "AO3_SEARCH_URL", mode="before")
    @classmethod
    def strip_url(cls, v):
        if isinstance(v, str):
            # Handle surrounding quotes from copy-pasted secrets
            v = v.strip().strip("'").strip('"')
        return v

    @field_validator("DISCORD_ADMIN_ROLE_ID", mode="before")
    @classmethod
    def empty_role_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def validate_all(self) -> List[str]:
        """
        Validate cross-field settings.
        Returns a list of warning/error messages.
        """
        errors = []

        # Critical
        if not self.DISCORD_WEBHOOK_URL.startswith(("https://", "http://")):
            errors.append("❌ DISCORD_WEBHOOK_URL must be an http(s) URL")
        if not self.AO3_SEARCH_URL.startswith(("https://", "http://")):
            errors.append("❌ AO3_SEARCH_URL must be an http(s) URL")
        if self.FETCH_MAX_ATTEMPTS < 1:
            errors.append("❌ FETCH_MAX_ATTEMPTS must be at least 1")
        if self.DISCORD_MAX_ATTEMPTS < 1:
            errors.append("❌ DISCORD_MAX_ATTEMPTS must be at least 1")
        if self.ENRICH_CONCURRENCY < 1:
            errors.append("❌ ENRICH_CONCURRENCY must be at least 1")
        if self.DISCORD_MAX_LINES_PER_MESSAGE < 1:
            errors.append("❌ DISCORD_MAX_LINES_PER_MESSAGE must be at least 1")
        if self.DISCORD_BATCH_THRESHOLD > self.DISCORD_MAX_LINES_PER_MESSAGE:
            errors.append("❌ DISCORD_BATCH_THRESHOLD must not exceed DISCORD_MAX_LINES_PER_MESSAGE")
        if self.FETCH_TIMEOUT_CAP < self.FETCH_TIMEOUT_BASE:
            errors.append("❌ FETCH_TIMEOUT_CAP must not be below FETCH_TIMEOUT_BASE")

        # Warnings
        if not self.DISCORD_ADMIN_ROLE_ID:
            errors.append("⚠️ DISCORD_ADMIN_ROLE_ID is not set - zero-works alerts will not ping anyone")
        if self.ENRICH_MAX_ENTRIES <= 0:
            errors.append("⚠️ ENRICH_MAX_ENTRIES is 0 - item pages will never be fetched")

        return errors


def load_settings(**overrides) -> Settings:
    """Reads the environment (and .env) once. Overrides win over env values."""
    return Settings(**overrides)

# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.AUTH_COOKIE_NAME)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime.
# =============================================================================

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide sensible defaults for development

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (sessions + Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL for the session store and the Celery broker"
    )

    # -------------------------------------------------------------------------
    # Session / Cookies
    # -------------------------------------------------------------------------

    BASE_URL: str = Field(
        default="http://localhost:3000",
        description="Public origin used to build redirect URLs"
    )

    AUTH_COOKIE_NAME: str = Field(
        default="sid",
        min_length=1,
        description="Name of the cookie holding the opaque session id"
    )

    SESSION_TTL_SECONDS: int = Field(
        default=60 * 60 * 24 * 7,
        gt=0,
        description="Session lifetime in Redis and in the cookie (seconds)"
    )

    OAUTH_STATE_COOKIE_NAME: str = Field(
        default="discord_oauth_state",
        description="Cookie carrying the OAuth CSRF state between start and callback"
    )

    OAUTH_STATE_TTL_SECONDS: int = Field(
        default=10 * 60,
        gt=0,
        description="Lifetime of the OAuth state cookie"
    )

    # -------------------------------------------------------------------------
    # Discord OAuth / Bot
    # -------------------------------------------------------------------------

    DISCORD_CLIENT_ID: str = Field(..., min_length=1)
    DISCORD_CLIENT_SECRET: str = Field(..., min_length=1)
    DISCORD_GUILD_ID: str = Field(
        ...,
        min_length=1,
        description="Discord server (guild) id the members live in"
    )
    DISCORD_REDIRECT_URI: str = Field(
        ...,
        min_length=1,
        description="OAuth callback URL registered with Discord"
    )

    DISCORD_BOT_TOKEN: str = Field(
        default="",
        description="Bot token used for guild member lookups and sync"
    )

    # -------------------------------------------------------------------------
    # Discord Role IDs
    # -------------------------------------------------------------------------
    # Empty strings never match a role.

    DISCORD_ADMIN_ROLE_ID: str = ""

    DISCORD_HEAD_1_ROLE_ID: str = ""
    DISCORD_HEAD_2_ROLE_ID: str = ""
    DISCORD_HEAD_3_ROLE_ID: str = ""

    DISCORD_MEMBER_1_ROLE_ID: str = ""
    DISCORD_MEMBER_2_ROLE_ID: str = ""
    DISCORD_MEMBER_3_ROLE_ID: str = ""

    DISCORD_CLUB_ROLE_ID: str = ""

    # -------------------------------------------------------------------------
    # Member Sync
    # -------------------------------------------------------------------------

    CRON_SECRET: str = Field(
        default="",
        description="Shared secret for the scheduled sync endpoint"
    )

    ADMIN_SYNC_SECRET: str = Field(
        default="",
        description="Shared secret for the manual admin sync endpoint"
    )

    MEMBER_SYNC_INTERVAL_MINUTES: int = Field(
        default=60,
        ge=1,
        le=24 * 60,
        description="How often Celery beat runs the Discord member sync"
    )

    # -------------------------------------------------------------------------
    # Leave Rules
    # -------------------------------------------------------------------------

    GUILD_TIMEZONE: str = Field(
        default="Asia/Bangkok",
        description="Timezone used to decide which calendar day a leave falls on"
    )

    LEAVE_CANCEL_CUTOFF: str = Field(
        default="20:00",
        pattern=r"^\d{2}:\d{2}$",
        description="Same-day leaves can only be cancelled before this time (HH:MM)"
    )

    # -------------------------------------------------------------------------
    # Storage / Upload Settings
    # -------------------------------------------------------------------------

    EQUIPMENT_BUCKET: str = Field(
        default="member-equipment",
        description="Supabase Storage bucket for equipment screenshots"
    )

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum image upload size in MB"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("GUILD_TIMEZONE")
    @classmethod
    def validate_guild_timezone(cls, v: str) -> str:
        """Fail at startup on an unknown IANA zone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("LEAVE_CANCEL_CUTOFF")
    @classmethod
    def validate_cancel_cutoff(cls, v: str) -> str:
        """HH:MM on a 24-hour clock."""
        hours, minutes = (int(part) for part in v.split(":"))
        if hours > 23 or minutes > 59:
            raise ValueError(f"Invalid cut-off time: {v}")
        return v

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:3000, https://inferno.gg" -> ["http://localhost:3000", "https://inferno.gg"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def sync_secrets(self) -> list[str]:
        """Secrets accepted by the scheduled sync endpoint (blank ones dropped)."""
        return [s for s in (self.CRON_SECRET, self.ADMIN_SYNC_SECRET) if s]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def secure_cookies(self) -> bool:
        """Cookies carry the Secure flag only in production (local dev runs on http)."""
        return self.is_production


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()

# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Loads configuration from environment variables using pydantic-settings.
# One Settings class holds every value the API, the workers and the
# integrations (Supabase, OpenAI, Stripe, SMTP, government APIs) need.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Required values (Supabase, OpenAI) fail validation at startup.
    Optional integrations (Stripe, SMTP, SAM.gov) are disabled when
    their keys are left empty; see the `*_enabled` properties.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret used to verify Supabase access tokens"
    )

    CHECKLIST_FILES_BUCKET: str = Field(
        default="bidding-checklist-files",
        description="Storage bucket for compliance documents"
    )

    APPLICATION_FILES_BUCKET: str = Field(
        default="application-files",
        description="Storage bucket for files attached to submitted applications"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (for Celery)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery broker"
    )

    # -------------------------------------------------------------------------
    # OpenAI Configuration
    # -------------------------------------------------------------------------

    OPENAI_API_KEY: str = Field(
        ...,
        description="OpenAI API key for proposal and document analysis"
    )

    OPENAI_MODEL: str = Field(
        default="gpt-4o",
        description="Chat completion model used for every analysis call"
    )

    AI_TEMPERATURE: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="Default sampling temperature for analysis calls"
    )

    AI_QUEUE_BATCH_SIZE: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Queued document analyses processed per worker run"
    )

    # -------------------------------------------------------------------------
    # Stripe Configuration
    # -------------------------------------------------------------------------

    STRIPE_SECRET_KEY: str = Field(
        default="",
        description="Stripe secret key (billing disabled when empty)"
    )

    STRIPE_WEBHOOK_SECRET: str = Field(
        default="",
        description="Signing secret for Stripe webhook events"
    )

    # -------------------------------------------------------------------------
    # Email (SMTP) Configuration
    # -------------------------------------------------------------------------

    SMTP_HOST: str = Field(default="", description="SMTP server host")

    SMTP_PORT: int = Field(default=587, ge=1, le=65535, description="SMTP server port")

    SMTP_USERNAME: str = Field(default="", description="SMTP login user")

    SMTP_PASSWORD: str = Field(default="", description="SMTP login password")

    SMTP_USE_TLS: bool = Field(
        default=True,
        description="Upgrade plain SMTP connections with STARTTLS (ignored on port 465)"
    )

    SMTP_TIMEOUT_SECONDS: int = Field(default=15, ge=1, le=120)

    EMAIL_FROM: str = Field(
        default="GovContractAI <noreply@govcontractai.com>",
        description="Default From header for outgoing mail"
    )

    # -------------------------------------------------------------------------
    # Government Data APIs
    # -------------------------------------------------------------------------

    SAM_GOV_API_KEY: str = Field(
        default="",
        description="SAM.gov public API key (SAM search skipped when empty)"
    )

    GOV_API_TIMEOUT_SECONDS: float = Field(
        default=20.0,
        gt=0,
        description="Timeout for calls to USAspending, Grants.gov and friends"
    )

    GOV_API_USER_AGENT: str = Field(
        default="GovContractAI/1.0",
        description="User-Agent header sent to public government APIs"
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

    API_HOST: str = Field(default="0.0.0.0")

    API_PORT: int = Field(default=8000, ge=1, le=65535)

    APP_URL: str = Field(
        default="http://localhost:3000",
        description="Public URL of the web client, used in emails and Stripe redirects"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    ADMIN_EMAILS: str = Field(
        default="",
        description="Emails allowed to use admin endpoints (comma-separated)"
    )

    ADMIN_NOTIFICATION_EMAIL: str = Field(
        default="",
        description="Inbox that receives opportunity-request alerts"
    )

    CRON_SECRET: str = Field(
        default="",
        description="Bearer secret for scheduler-triggered endpoints"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum upload size in MB for application and checklist files"
    )

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
        """Parse CORS_ORIGINS into a list of origins."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_emails_list(self) -> list[str]:
        """
        Parse ADMIN_EMAILS into a lowercase list.

        Example: "Ops@Example.com, a@b.org" -> ["ops@example.com", "a@b.org"]
        """
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]

    @property
    def admin_notification_email(self) -> str | None:
        """Alert inbox, falling back to the first admin."""
        if self.ADMIN_NOTIFICATION_EMAIL:
            return self.ADMIN_NOTIFICATION_EMAIL
        admins = self.admin_emails_list
        return admins[0] if admins else None

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USERNAME and self.SMTP_PASSWORD)

    @property
    def sam_gov_enabled(self) -> bool:
        return bool(self.SAM_GOV_API_KEY)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    The .env file is parsed and validated once per process.
    """
    return Settings()


# Global settings instance
# Usage: from app.config import settings
settings = get_settings()

"""
Application settings.

Every tunable is read from the environment (or ``.env``) by pydantic-settings;
field names map to upper-case variables, e.g. ``otp_expire_minutes`` is
``OTP_EXPIRE_MINUTES``. Import the module-level ``settings`` instance rather
than constructing ``Settings`` again.
"""

from typing import Literal

from pydantic import Field, PostgresDsn, RedisDsn, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- service ---------------------------------------------------------
    app_name: str = "Cryptography Resource Manager"
    version: str = "0.1.0"
    description: str = (
        "Account registration, OTP email verification, login and permissions API"
    )
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # --- storage ---------------------------------------------------------
    database_url: PostgresDsn = Field(..., description="postgresql+asyncpg:// DSN")
    database_auto_create: bool = Field(
        default=False, description="Run create_all for missing tables at startup"
    )
    db_pool_size: int = Field(default=5, ge=1, le=50)
    db_max_overflow: int = Field(default=10, ge=0, le=100)
    db_pool_recycle: int = Field(default=3600, ge=300)  # seconds
    db_pool_timeout: int = Field(default=30, ge=1)  # seconds
    db_pool_pre_ping: bool = True

    redis_url: RedisDsn = Field(..., description="Redis DSN used by the rate limiter")

    # --- credentials and sessions ----------------------------------------
    secret_key: str = Field(..., min_length=32, description="HS256 signing key")
    access_token_expire_minutes: int = Field(default=60, ge=1, le=1440)

    argon2_time_cost: int = Field(default=2, ge=1, le=10)
    argon2_memory_cost: int = Field(default=65536, ge=8192)  # KiB
    argon2_parallelism: int = Field(default=4, ge=1, le=16)
    password_min_length: int = Field(default=8, ge=6, le=128)

    max_login_attempts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Consecutive wrong passwords that suspend the account",
    )

    bootstrap_admin_email: str | None = Field(
        default=None, description="Email of the first administrator, created once at startup"
    )
    bootstrap_admin_password: str | None = Field(default=None, repr=False)
    bootstrap_admin_name: str = "Administrator"

    # --- one-time codes --------------------------------------------------
    otp_length: int = Field(default=6, ge=4, le=10)
    otp_expire_minutes: int = Field(default=10, ge=1, le=60)
    password_reset_otp_expire_minutes: int = Field(default=15, ge=1, le=60)
    otp_max_attempts: int = Field(default=5, ge=1, le=20)
    otp_cleanup_enabled: bool = True
    otp_cleanup_interval_seconds: int = Field(default=900, ge=1)
    expose_otp_in_response: bool = Field(
        default=False, description="Echo issued codes in API responses (development)"
    )

    # --- outgoing mail ---------------------------------------------------
    email_provider: Literal["console", "smtp"] = "console"
    email_from_address: str = "noreply@crypto-resource.com"
    email_from_name: str = "Cryptography Resource Manager"
    smtp_host: str = "localhost"
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_timeout: int = Field(default=30, ge=1, le=300)

    # --- HTTP surface ----------------------------------------------------
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated allowed origins",
    )
    cors_allow_credentials: bool = True

    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str | None = Field(
        default=None, description="limits storage URI, redis_url when unset"
    )
    rate_limit_default: str = "100/minute"
    rate_limit_login: str = "5/15minute"
    rate_limit_register: str = "3/hour"
    rate_limit_otp: str = "5/15minute"
    rate_limit_password_reset: str = "3/hour"

    # --- logging and audit -----------------------------------------------
    log_level: LogLevel = "INFO"
    log_format: Literal["json", "console"] = "console"
    log_file_enabled: bool = True
    log_file_path: str = "logs/app.log"
    log_file_max_bytes: int = 10 * 1024 * 1024
    log_file_backup_count: int = 5
    audit_log_enabled: bool = True

    @field_validator("cors_origins")
    @classmethod
    def split_cors_origins(cls, value: str) -> list[str]:
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @model_validator(mode="after")
    def check_otp_exposure(self) -> "Settings":
        if self.environment == "production" and self.expose_otp_in_response:
            raise ValueError("expose_otp_in_response must be disabled in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def database_url_str(self) -> str:
        return str(self.database_url)

    @property
    def rate_limit_storage(self) -> str:
        """Storage URI handed to the rate limiter."""
        return self.rate_limit_storage_uri or str(self.redis_url)

    @property
    def email_sender(self) -> str:
        """``From`` header for outgoing mail."""
        return f"{self.email_from_name} <{self.email_from_address}>"


settings = Settings()

"""
Service settings.

Every tunable (secrets, store URL, token lifetimes, rate limits, logging,
bootstrap identity) is read from the environment or a `.env` file into the
`settings` singleton below.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Warden settings.

    Field names map case-insensitively to environment variables, e.g.
    `ACCESS_TOKEN_EXPIRE_MINUTES=30`. `SECRET_KEY` and `DATABASE_URL` have no
    default and must be provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(default="Warden Access Control")
    description: str = Field(
        default="Identity and access control service with route-level RBAC"
    )
    version: str = Field(default="0.1.0")
    environment: Literal["development", "staging", "production"] = Field(default="development")
    debug: bool = Field(default=False)
    api_prefix: str = Field(default="/api/v1")

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)

    # -------------------------------------------------------------------------
    # Security Settings
    # -------------------------------------------------------------------------
    secret_key: str = Field(
        ...,
        min_length=32,
        description="Secret key for JWT signing. Must be at least 32 characters."
    )
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(default="HS256")

    # JWT Token Configuration
    access_token_expire_minutes: int = Field(default=15, ge=1, le=1440)
    refresh_token_expire_days: int = Field(default=7, ge=1, le=30)

    # Argon2id Password Hashing Configuration
    argon2_time_cost: int = Field(default=2, ge=1, le=10)
    argon2_memory_cost: int = Field(default=65536, ge=8192)  # 64 MB
    argon2_parallelism: int = Field(default=4, ge=1, le=16)

    # -------------------------------------------------------------------------
    # Database Configuration
    # -------------------------------------------------------------------------
    database_url: str = Field(
        ...,
        description="SQLAlchemy async URL (postgresql+asyncpg://... or sqlite+aiosqlite://...)"
    )

    # Connection Pool Settings (ignored for SQLite)
    db_pool_size: int = Field(default=5, ge=1, le=50)
    db_max_overflow: int = Field(default=10, ge=0, le=100)
    db_pool_recycle: int = Field(default=3600, ge=300)  # Seconds
    db_pool_pre_ping: bool = Field(default=True)
    db_pool_timeout: int = Field(default=30, ge=1)

    # Deadline applied to the execute stage of every request pipeline
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated list of allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(default=True)

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_storage_uri: str = Field(default="memory://")
    rate_limit_default: str = Field(default="200/minute")
    rate_limit_login: str = Field(default="5/15minute")
    rate_limit_token_refresh: str = Field(default="10/hour")

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["json", "console"] = Field(default="console")
    log_file_enabled: bool = Field(default=False)
    log_file_path: str = Field(default="logs/warden.log")
    log_file_max_bytes: int = Field(default=10485760)  # 10 MB
    log_file_backup_count: int = Field(default=5)

    # -------------------------------------------------------------------------
    # Bootstrap (administrator and root role)
    # -------------------------------------------------------------------------
    bootstrap_enabled: bool = Field(default=True)
    bootstrap_interval_seconds: int = Field(default=300, ge=1)
    admin_username: str = Field(default="administrator", min_length=1, max_length=50)
    admin_password: str = Field(
        default="ChangeMe!2024",
        min_length=8,
        description="Plain administrator password, hashed once at startup",
    )
    admin_password_hash: str | None = Field(
        default=None,
        description="Pre-computed Argon2id hash; takes precedence over admin_password",
    )
    root_role_name: str = Field(default="root", min_length=1, max_length=50)

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        """Ensure the prefix starts with a slash and has no trailing slash."""
        v = "/" + v.strip("/")
        return "" if v == "/" else v

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def cors_origins_list(self) -> list[str]:
        """Get parsed CORS origins as list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()

"""
Centralized configuration management using pydantic-settings.
This module provides a single source of truth for all application configuration.
"""

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils.logger import setup_logger

load_dotenv()


logger = setup_logger("core_config")

DEFAULT_JWT_SECRET = "change-this-jwt-secret-in-production"


class Settings(BaseSettings):
    """
    Application settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_prefix="",
    )

    # ===== Environment =====
    app_env: str = Field(
        default="development",
        alias="APP_ENV",
        description="Runtime environment: development, production or test",
    )

    # ===== Database Configuration =====
    database_url: str = Field(
        default="sqlite+aiosqlite:///./postboard.db",
        alias="DATABASE_URL",
        description="Application database URL",
    )

    test_database_url: str = Field(
        default="sqlite+aiosqlite:///./postboard_test.db",
        alias="TEST_DATABASE_URL",
        description="Database URL used when APP_ENV=test",
    )

    # ===== Token Configuration =====
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        alias="JWT_SECRET",
        description="Secret used to sign bearer tokens",
    )

    jwt_algorithm: str = Field(
        default="HS256", alias="JWT_ALGORITHM", description="JWT signing algorithm"
    )

    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
        description="Bearer token lifetime in minutes (default 7 days)",
    )

    bcrypt_rounds: int = Field(
        default=12,
        alias="BCRYPT_ROUNDS",
        description="bcrypt work factor for password hashing",
    )

    # ===== Monitoring Configuration =====
    slow_request_threshold_ms: float = Field(
        default=1000.0,
        alias="SLOW_REQUEST_THRESHOLD_MS",
        description="Requests slower than this are logged as slow and counted",
    )

    metrics_report_interval_seconds: int = Field(
        default=300,
        alias="METRICS_REPORT_INTERVAL_SECONDS",
        description="Interval of the periodic performance report, 0 disables it",
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="0.0.0.0", alias="SERVER_HOST", description="Server host address"
    )

    server_port: int = Field(
        default=5000, alias="SERVER_PORT", description="Server port number"
    )

    server_workers: int = Field(
        default=1, alias="SERVER_WORKERS", description="Number of uvicorn workers"
    )

    # ===== CORS Configuration =====
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",  # Vite dev server default port
            "http://localhost:3000",  # React dev server
            "http://127.0.0.1:5173",
        ],
        alias="CORS_ALLOW_ORIGINS",
        description="CORS allowed origins",
    )

    cors_allow_credentials: bool = Field(
        default=True,
        alias="CORS_ALLOW_CREDENTIALS",
        description="Whether to allow credentials in CORS requests",
    )

    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_METHODS",
        description="CORS allowed methods",
    )

    cors_allow_headers: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_HEADERS",
        description="CORS allowed headers",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings and log warnings for missing critical configurations."""

        if self.app_env not in ("development", "production", "test"):
            logger.warning(
                f"Unknown APP_ENV '{self.app_env}', treating it as production."
            )

        if self.is_production and self.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET environment variable not set for production.")

        for attr in ("database_url", "test_database_url"):
            url = getattr(self, attr)
            if url.startswith("postgresql://"):
                setattr(
                    self, attr, url.replace("postgresql://", "postgresql+asyncpg://", 1)
                )

        logger.debug(f"Environment: {self.app_env}")

        return self

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return not (self.is_test or self.is_development)

    @property
    def active_database_url(self) -> str:
        """Database URL for the current environment."""
        return self.test_database_url if self.is_test else self.database_url


# Global settings instance
settings = Settings()

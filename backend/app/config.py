"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    APP_NAME: str = "Workflow Automation Engine"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, testing, production

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./workflows.db"
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Execution
    TIMEZONE: str = "UTC"  # calendar used for due-date predicates
    MAX_STEPS_PER_RUN: int = 500

    # Notifications
    NOTIFICATION_WEBHOOK_URL: str = ""
    SLACK_WEBHOOK_URL: str = ""
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def notification_channels(self) -> dict:
        """Channel configs for the notification manager, keyed by channel name."""
        channels: dict = {"in_app": {}}
        if self.NOTIFICATION_WEBHOOK_URL:
            channels["webhook"] = {
                "url": self.NOTIFICATION_WEBHOOK_URL,
                "timeout": self.NOTIFICATION_TIMEOUT_SECONDS,
            }
        if self.SLACK_WEBHOOK_URL:
            channels["slack"] = {
                "webhook_url": self.SLACK_WEBHOOK_URL,
                "timeout": self.NOTIFICATION_TIMEOUT_SECONDS,
            }
        return channels


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses caching to ensure settings are loaded only once.

    Returns:
        Settings object with all configuration values
    """
    return Settings()

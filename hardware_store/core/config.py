# hardware_store/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars in production (.env):
      - DATABASE_URL (Postgres connection string)
      - JWT_SECRET (signing secret shared with the admin login service)

    Optional:
      - SEMAPHORE_API_KEY / MOVIDER_API_KEY + MOVIDER_API_SECRET
        (only needed when SMS_ENABLED=true)
      - ADMIN_NOTIFICATION_PHONE (new-order alerts for the store owner)
    """

    PROJECT_NAME: str = "Hardware Store API"
    API_V1_STR: str = "/api/v1"

    # DB config
    DATABASE_URL: str = "sqlite:///./hardware_store.db"
    DATABASE_ECHO: bool = False

    # JWT verification (actor identity for admin actions)
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Store info, used in customer-facing messages
    STORE_NAME: str = "Hardware Store"
    STORE_PHONE: str = ""

    # Calendar days in sales reports are cut in this timezone
    REPORT_TIMEZONE: str = "Asia/Manila"

    ORDER_NUMBER_MAX_ATTEMPTS: int = 5

    # SMS
    SMS_ENABLED: bool = False
    SMS_TEST_MODE: bool = False
    SMS_SENDER_NAME: str = "HARDWARE"
    SMS_PROVIDERS: list[str] = ["semaphore"]
    SMS_MAX_RETRIES: int = 2
    SMS_RETRY_DELAY_SECONDS: float = 2.0
    SMS_TIMEOUT_SECONDS: float = 30.0
    SEMAPHORE_API_KEY: str | None = None
    MOVIDER_API_KEY: str | None = None
    MOVIDER_API_SECRET: str | None = None
    ADMIN_NOTIFICATION_PHONE: str | None = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()

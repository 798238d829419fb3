# crm_campaigns/core/config.py

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values come from the process environment; a local .env file is read
    # when present so the service can be started outside Docker.
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database URLs ---
    DATABASE_URL_LOCAL: str = "sqlite:///./crm_campaigns.db"
    DATABASE_URL_PROD: str = ""

    # Public base URL embedded in tracking pixels, click redirects and
    # unsubscribe links.
    APP_URL: str = "http://localhost:8000"

    # --- Outbound mail (Resend) ---
    RESEND_API_KEY: str = ""

    # Maximum number of jobs processed by one send trigger
    SEND_BATCH_SIZE: int = 50

    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_ENABLED: bool = True
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # --- Dynamic Properties ---
    @property
    def DATABASE_URL(self) -> str:
        if self.ENV == "local" or not self.DATABASE_URL_PROD:
            return self.DATABASE_URL_LOCAL
        return self.DATABASE_URL_PROD


# Create a single instance of the settings
settings = Settings()

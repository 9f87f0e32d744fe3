from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = [PROJECT_ROOT / ".env", ".env"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILES, extra="ignore")

    # DB
    DATABASE_URL: str = "sqlite:///./data/birthdays.db"

    # App
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # API
    API_KEY: str | None = None
    API_KEY_SECRET: str | None = None

    # Reminders
    REMINDER_WEBHOOK_SECRET: str | None = None
    REMINDER_DEFAULT_DAYS: int = 2
    REMINDER_RUN_HOUR: int = 8
    WORKER_POLL_INTERVAL_SEC: int = 60

    # SMTP
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str | None = None
    SMTP_STARTTLS: bool = True
    SMTP_TIMEOUT_SEC: int = 30


settings = Settings()

#config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

from .application.scheduling.policy import SchedulingPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True)

    # Application Settings
    APP_NAME: str = "MedBook Appointments API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = int(os.environ.get("PORT", 8000))

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./medbook.db"

    # Security Settings
    SECRET_KEY: str = Field(default="change-me-in-prod", alias="JWT_SECRET_KEY")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS Settings (comma-separated strings to avoid JSON parsing in env)
    ALLOWED_ORIGINS: str = "*"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 100

    # Scheduling
    AVAILABLE_TEST_DAYS: str = "Monday,Thursday"
    BUSINESS_OPEN: str = "08:00"
    BUSINESS_CLOSE: str = "17:00"
    DEFAULT_TEST_DURATION_MINUTES: int = 45
    SLOT_STEP_MINUTES: int = 15
    # Serialises bookings per hospital/date with an advisory lock (PostgreSQL only)
    SCHEDULE_LOCKING_ENABLED: bool = True

    # Twilio Settings
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM: str = ""
    TWILIO_MESSAGING_SERVICE_SID: str = ""
    # Region assumed for phone numbers written without a country code
    DEFAULT_COUNTRY: str = "RW"

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",") if item.strip()]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

    @property
    def available_test_days_list(self) -> List[str]:
        return self._split_csv(self.AVAILABLE_TEST_DAYS)

    def scheduling_policy(self) -> SchedulingPolicy:
        return SchedulingPolicy.from_strings(
            allowed_days=self.available_test_days_list,
            opens=self.BUSINESS_OPEN,
            closes=self.BUSINESS_CLOSE,
            default_duration=self.DEFAULT_TEST_DURATION_MINUTES,
            step=self.SLOT_STEP_MINUTES,
            lock_schedule=self.SCHEDULE_LOCKING_ENABLED,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Settings = get_settings()

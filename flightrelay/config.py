from functools import lru_cache
from typing import List, Optional
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logging-specific configuration settings."""
    LEVEL: str = "INFO"
    FORMAT: str = "json"
    CORRELATION_ID_HEADER: str = "X-Correlation-ID"

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")


class AviationSettings(BaseSettings):
    """Upstream aviation data provider (aviationstack) settings."""
    API_KEY: str = ""
    BASE_URL: str = "http://api.aviationstack.com/v1"
    TIMEOUT: float = 10.0
    MAX_RETRIES: int = 2

    model_config = SettingsConfigDict(env_prefix="AVIATIONSTACK_", extra="ignore")


class ClassifierSettings(BaseSettings):
    """Fallback intent classifier settings."""
    ENABLED: bool = True
    BACKEND: str = "ollama"
    BASE_URL: str = "http://localhost:11434"
    MODEL: str = "tinyllama"
    TEMPERATURE: float = 0.1
    TIMEOUT: float = 8.0
    OPENAI_API_KEY: Optional[str] = None

    model_config = SettingsConfigDict(env_prefix="CLASSIFIER_", extra="ignore")

    @field_validator("BACKEND")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("ollama", "openai"):
            raise ValueError("CLASSIFIER_BACKEND must be 'ollama' or 'openai'")
        return v


class TwilioSettings(BaseSettings):
    """Twilio WhatsApp transport settings."""
    ACCOUNT_SID: str = ""
    AUTH_TOKEN: str = ""
    WHATSAPP_FROM: str = ""
    BASE_URL: str = "https://api.twilio.com/2010-04-01"
    TIMEOUT: float = 10.0

    model_config = SettingsConfigDict(env_prefix="TWILIO_", extra="ignore")


class TrackingSettings(BaseSettings):
    """Subscription re-check cycle settings."""
    POLL_INTERVAL_SECONDS: float = 180.0
    MAX_CONCURRENT_CHECKS: int = 5
    CHECK_TIMEOUT: float = 20.0

    model_config = SettingsConfigDict(env_prefix="TRACKING_", extra="ignore")

    @field_validator("POLL_INTERVAL_SECONDS", "CHECK_TIMEOUT")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Tracking intervals must be positive")
        return v


class Settings(BaseSettings):
    """Main application settings."""
    APP_NAME: str = "flight-relay"
    VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["*"]

    # Airport the bot answers departures/arrivals for
    HOME_AIRPORT: str = "FCO"
    AIRPORT_NAME: str = "Fiumicino Airport"
    LIST_LIMIT: int = 10

    # Nested settings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    aviation: AviationSettings = Field(default_factory=AviationSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    twilio: TwilioSettings = Field(default_factory=TwilioSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("HOME_AIRPORT")
    @classmethod
    def validate_home_airport(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("HOME_AIRPORT must be a 3-letter IATA code")
        return v


def load_env_file() -> None:
    """
    Load environment variables from .env files based on the environment.

    Priority:
    1. .env.{ENV}.local
    2. .env.{ENV}
    3. .env.local
    4. .env

    Nested settings sections read the process environment, so the files are
    loaded into it rather than left to the top-level model alone.
    """
    env = os.getenv("ENV", "development")
    env_files = [
        f".env.{env}.local",
        f".env.{env}",
        ".env.local",
        ".env"
    ]

    for env_file in env_files:
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=False)


@lru_cache()
def get_settings() -> Settings:
    """
    Returns cached application settings.

    Using lru_cache to avoid re-reading environment variables on each call.
    """
    load_env_file()
    return Settings()

"""
Application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database (unset = in-memory storage)
    database_url: Optional[str] = None
    db_echo: bool = False
    db_auto_create: bool = False

    # OpenWeatherMap
    openweather_api_key: Optional[str] = None
    openweather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    weather_timeout: float = 10.0

    # OpenAI-compatible chat completions
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    llm_timeout: float = 60.0

    # API Configuration
    project_name: str = "WeatherScent"
    log_level: str = "INFO"

    # CORS
    frontend_url: str = "http://localhost:5173"

    @field_validator("database_url")
    @classmethod
    def _normalize_database_url(cls, value: Optional[str]) -> Optional[str]:
        if not value or not value.strip():
            return None
        value = value.strip()
        # Hosted Postgres providers hand out sync URLs; the engine needs asyncpg
        for prefix in ("postgres://", "postgresql://"):
            if value.startswith(prefix):
                return "postgresql+asyncpg://" + value[len(prefix):]
        return value


# Global settings instance
settings = Settings()

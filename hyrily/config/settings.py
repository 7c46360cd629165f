"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Hyrily"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Gemini (question generation and answer evaluation)
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_timeout_seconds: float = 60.0

    # Whisper configuration (for STT on voice sessions)
    whisper_api_url: str = ""  # Empty disables server-side voice capture

    # TTS configuration
    tts_enabled: bool = False
    tts_voice: str = "female"  # male, female, professional or an Edge voice name

    # Interview settings
    question_count: int = 12
    question_time_limit_seconds: int = 60
    session_time_limit_seconds: int | None = None
    quiet_period_seconds: float = 2.0
    recognizer_restart_delay_seconds: float = 0.5
    default_technology_stack: str = "Frontend Engineering"

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

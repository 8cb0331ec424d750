"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

import tempfile
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
    app_name: str = "VoiceScreen"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Text generation (chat-completions style serving endpoint)
    llm_base_url: str = ""
    llm_api_key: str = ""
    llm_endpoint: str = "/serving-endpoints/gemini-flash/invocations"
    llm_timeout_seconds: float = 60.0
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.7

    # Transcription (AssemblyAI)
    assemblyai_api_key: str = ""
    assemblyai_base_url: str = "https://api.assemblyai.com"
    transcription_language: str = "en"
    transcription_poll_interval_seconds: float = 2.0
    transcription_max_poll_attempts: int = 30
    audio_staging_dir: str = Field(default_factory=tempfile.gettempdir)

    # Speech synthesis
    tts_voice: str = "en-US-JennyNeural"

    # Interview settings
    interview_topic: str = "full-stack (React + Node/Express)"
    resume_max_chars: int = 8000
    announce_seconds: int = 3  # Lead-in before the question is spoken
    pre_response_seconds: int = 5  # Lead-in before recording starts
    session_ttl_seconds: int = 3600  # How long finished sessions stay addressable

    # CORS - stored as comma-separated string in env
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

"""Configuration management using Pydantic Settings"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DUMAI_",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]

    # Logging
    log_level: str = "INFO"

    # Storage ("sqlite://" keeps everything in memory for the process lifetime)
    database_url: str = "sqlite://"

    # Reply generator
    llm_api_key: str | None = None
    llm_base_url: str = GROQ_BASE_URL
    llm_model: str = "llama3-70b-8192"
    llm_temperature: float = 0.9
    llm_max_tokens: int = 500

    # Sessions
    default_title: str = "New Chat"
    title_max_length: int = 40

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> LogLevel:
        """Validate log level, fallback to INFO if invalid."""
        upper_v = v.upper()
        if upper_v not in VALID_LOG_LEVELS:
            return "INFO"
        return upper_v  # type: ignore[return-value]

    def resolved_llm_api_key(self) -> str | None:
        """API key for the reply generator, falling back to GROQ_API_KEY."""
        return self.llm_api_key or os.getenv("GROQ_API_KEY")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance. Use this for dependency injection."""
    return Settings()


# For backward compatibility and simple imports
settings = get_settings()

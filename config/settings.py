"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/practice.db")

    GROQ_API_KEY: str = ""
    CREDENTIAL_PREFIX: str = "gsk_"

    LLM_BASE_URL: str = "https://api.groq.com"
    LLM_ENDPOINT: str = "/openai/v1/chat/completions"
    LLM_MODEL: str = "llama3-8b-8192"
    LLM_TIMEOUT_S: float = 30.0
    LLM_MAX_RETRIES: int = 0
    LLM_RETRY_BACKOFF_S: float = 1.0

    TIMER_TICK_SECONDS: float = 1.0
    SPEECH_STOP_DEBOUNCE_S: float = 0.5

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()

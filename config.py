"""
Application configuration.

Values come from environment variables or a local ``.env`` file (loaded by
pydantic-settings through python-dotenv). Components get these values
passed in; none of them read the environment themselves.
"""
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite:///./quizzes.db"

    # ── LLM ───────────────────────────────────────────────
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"
    llm_timeout: float = 60.0
    llm_max_attempts: int = 1

    # ── Article fetch ─────────────────────────────────────
    fetch_timeout: float = 20.0
    fetch_max_attempts: int = 1
    fetch_mobile_fallback: bool = False

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()

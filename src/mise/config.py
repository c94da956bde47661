"""
Mise - Configuration and settings.

Settings are read from the environment (and an optional .env file).
Planner policy constants live next to the code that uses them;
only credentials, model choices and runtime switches belong here.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class MiseSettings(BaseSettings):
    """
    Application settings.

    Supabase credentials are optional at load time so that pure
    components (compliance, diversity, calendar) can be used without
    a database. The Supabase client raises if they are missing.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Embeddings
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 384  # Must match the vector(384) column
    embedding_version: int = 1

    # Generation
    generation_model: str = "gpt-4.1-mini"
    generation_max_retries: int = 2

    # Application
    mise_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # MISE_LOG_PROMPTS=1 - write generation prompts to prompt_logs/ (ignored in production)
    mise_log_prompts: bool = False

    # Dev requester used by the CLI
    dev_user_id: str = "00000000-0000-0000-0000-000000000002"

    @property
    def is_production(self) -> bool:
        return self.mise_env == "production"

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


@lru_cache
def get_settings() -> MiseSettings:
    """Get cached settings instance."""
    return MiseSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: MiseSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()

"""Service configuration loaded from the environment.

Values come from environment variables or an optional ``.env`` file in the
working directory. ``get_settings`` is cached so FastAPI dependencies can call
it on every request.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DataBackend = Literal["csv", "supabase"]


class Settings(BaseSettings):

    # Core
    APP_NAME: str = "MitraRec"
    LOG_LEVEL: str = "INFO"

    # Data source
    DATA_BACKEND: DataBackend = "csv"
    DATA_DIR: str = "data"
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_supabase_credentials(self) -> "Settings":
        if self.DATA_BACKEND == "supabase" and not (self.SUPABASE_URL and self.SUPABASE_KEY):
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required when DATA_BACKEND=supabase")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()

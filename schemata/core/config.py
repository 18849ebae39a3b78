from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    # Parsing
    MAX_DEPTH: int = Field(default=100, ge=1)  # Lazy resolution depth guard for self-referential schemas

    # Rendering
    PRETTIFY_BULLET: str = "×"

    model_config = SettingsConfigDict(env_prefix="SCHEMATA_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()

from pathlib import Path
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    Centralized service configuration with type validation.
    Automatically reads variables from the environment and an optional .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Server Settings ---
    HOST: str = "0.0.0.0"
    PORT: int = Field(8080, ge=0, le=65535)
    ROOT_DIR: Path = Field(default_factory=Path.cwd)

    # --- Logging Settings ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[Path] = None

    # --- Walker Settings ---
    MAX_WORKERS_PER_DIRECTORY: int = Field(32, ge=1)
    READ_CHUNK_SIZE: int = Field(64 * 1024, ge=1)

    # --- Output Settings ---
    JSON_INDENT: int = Field(2, ge=0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown LOG_LEVEL: {value}")
        return level

    @model_validator(mode="after")
    def check_root_dir(self):
        # The serve root is the base every request path is joined onto.
        if not self.ROOT_DIR.is_dir():
            raise ValueError(f"ROOT_DIR must be an existing directory: {self.ROOT_DIR}")
        self.ROOT_DIR = self.ROOT_DIR.resolve()
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the service settings.
    The first call to this function will initialize the settings.
    """
    return Settings()


def load_settings(**overrides) -> Settings:
    """
    Returns the cached settings, or a fresh validated instance when command-line
    overrides are given, so an override replaces a bad environment value.
    """
    if not overrides:
        return get_settings()
    return Settings(**overrides)

"""Configuration module for casperdriver settings.

Values are read from the environment (prefix ``CASPERDRIVER_``) or a local
``.env`` file. Explicit constructor arguments on Driver/ProcessRunner always
take precedence over these defaults.
"""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Driver settings."""

    model_config = SettingsConfigDict(
        env_prefix="CASPERDRIVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Engine executable, resolved through PATH when not absolute
    command: str = "casperjs"

    # Transient script location; None means the system temp directory
    script_dir: Optional[str] = None
    script_prefix: str = "casperdriver-"

    log_level: str = "INFO"


def get_settings() -> Settings:
    """Load settings fresh from the current environment."""

    return Settings()

"""Application configuration via pydantic-settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Package directory (where this file lives: sampha/config.py)
_PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_PORT = 8080


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Listener
    HOST: str = "0.0.0.0"
    PORT: int = DEFAULT_PORT

    # Name reported by GET /api/
    SERVICE_NAME: str = "sampha API"

    # Directory snapshotted into the asset store at startup
    STATIC_DIR: str = str(_PACKAGE_DIR / "static")

    # Timeouts (seconds)
    IDLE_TIMEOUT: int = 60
    READ_TIMEOUT: float = 10.0
    WRITE_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"

    @field_validator("PORT", mode="before")
    @classmethod
    def _default_port(cls, value):
        """Absent, empty, non-numeric or zero ports fall back to the default."""
        try:
            port = int(value)
        except (TypeError, ValueError):
            return DEFAULT_PORT
        return port or DEFAULT_PORT


def _build_settings() -> Settings:
    """Build settings, fixing a relative STATIC_DIR to be absolute from the cwd."""
    s = Settings()
    s.STATIC_DIR = str(Path(s.STATIC_DIR).expanduser().resolve())
    return s


settings = _build_settings()

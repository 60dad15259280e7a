# Settings: environment-driven configuration for tail-spotify.
# Created: 2026-10-19

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SCOPES = ["user-read-currently-playing", "user-read-playback-state"]


def get_config_dir() -> Path:
    """Default directory holding the credential record."""
    return Path.home() / ".config" / "tail_spotify"


class Settings(BaseSettings):
    """Runtime settings, read from ``TAIL_SPOTIFY_*`` variables or ``.env``.

    ``client_id``, ``client_secret`` and ``redirect_uri`` only fill in blank
    registration fields of the stored credential; they never replace values
    already on disk.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAIL_SPOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_dir: Path = Field(default_factory=get_config_dir)
    credentials_file: Path | None = None

    client_id: str | None = None
    client_secret: SecretStr | None = None
    redirect_uri: str | None = None

    accounts_url: str = "https://accounts.spotify.com"
    api_url: str = "https://api.spotify.com/v1"
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))

    request_timeout: float = 10.0
    log_level: str = "WARNING"

    @property
    def credentials_path(self) -> Path:
        if self.credentials_file is not None:
            return self.credentials_file.expanduser()
        return self.config_dir.expanduser() / "credentials.json"

    def client_secret_value(self) -> str | None:
        if self.client_secret is None:
            return None
        return self.client_secret.get_secret_value()


@lru_cache
def get_settings() -> Settings:
    return Settings()

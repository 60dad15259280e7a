import pytest

from tailspotify.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temp config dir and drop any cached instance."""
    for var in (
        "TAIL_SPOTIFY_CLIENT_ID",
        "TAIL_SPOTIFY_CLIENT_SECRET",
        "TAIL_SPOTIFY_REDIRECT_URI",
        "TAIL_SPOTIFY_CREDENTIALS_FILE",
        "TAIL_SPOTIFY_SCOPES",
        "TAIL_SPOTIFY_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("TAIL_SPOTIFY_CONFIG_DIR", str(tmp_path / "config"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

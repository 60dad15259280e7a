# Spotify Client: playback state from the Spotify Web API.
# Created: 2026-10-19

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ValidationError

from tailspotify.errors import ParseError, TransportError

logger = logging.getLogger(__name__)

_SPOTIFY_BASE = "https://api.spotify.com/v1"


class AlbumImage(BaseModel):
    url: str
    height: int | None = None
    width: int | None = None


class Album(BaseModel):
    name: str
    images: list[AlbumImage] = []


class Artist(BaseModel):
    name: str


class Track(BaseModel):
    name: str
    artists: list[Artist] = []
    album: Album | None = None
    duration_ms: int | None = None


class PlaybackState(BaseModel):
    """The subset of ``GET /me/player`` the CLI renders."""

    is_playing: bool
    progress_ms: int | None = None
    item: Track | None = None


@dataclass(frozen=True)
class PlaybackResult:
    """Outcome of a playback request.

    ``state`` is None when Spotify had nothing to report (204, or any other
    non-200 status).
    """

    state: PlaybackState | None
    status_code: int

    @property
    def is_playing(self) -> bool:
        return bool(self.state and self.state.is_playing and self.state.item)


class SpotifyClient:
    """HTTP client for the player endpoint of the Spotify Web API.

    Takes an already-valid bearer token; token freshness is the
    credential manager's job.
    """

    def __init__(self, http: httpx.Client, api_url: str = _SPOTIFY_BASE):
        self._http = http
        self.api_url = api_url.rstrip("/")

    def fetch_playback_state(self, access_token: str) -> PlaybackResult:
        try:
            resp = self._http.get(
                f"{self.api_url}/me/player",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Playback request failed: %s", e)
            raise TransportError(f"Unknown error: {e}", phase="fetch") from e

        if resp.status_code != 200:
            if resp.status_code >= 400:
                logger.warning(
                    "Spotify answered HTTP %d for playback state: %s",
                    resp.status_code,
                    _error_message(resp),
                )
            else:
                logger.debug("No playback state (HTTP %d)", resp.status_code)
            return PlaybackResult(state=None, status_code=resp.status_code)

        try:
            state = PlaybackState.model_validate_json(resp.content)
        except ValidationError as e:
            raise ParseError(
                f"Could not understand the playback state: {e.error_count()} invalid field(s)",
                phase="fetch",
            ) from e
        return PlaybackResult(state=state, status_code=200)


def _error_message(resp: httpx.Response) -> str:
    """Best-effort message from a Web API error body ``{"error": {...}}``."""
    try:
        data = resp.json()
    except ValueError:
        return resp.reason_phrase
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or resp.reason_phrase)
    if isinstance(error, str):
        return error
    return resp.reason_phrase

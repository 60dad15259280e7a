"""tail-spotify: print what Spotify is playing, for status bars and scripts."""

from tailspotify.errors import TailSpotifyError

__all__ = ["TailSpotifyError"]

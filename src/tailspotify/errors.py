# Errors: typed failures raised by the credential lifecycle and API clients.
# Created: 2026-10-19
#
# Components raise; only the CLI entry point turns these into a printed
# message and a non-zero exit status.

from __future__ import annotations

__all__ = [
    "TailSpotifyError",
    "ConfigurationError",
    "StoreError",
    "AuthorizationError",
    "TransportError",
    "ParseError",
    "InputError",
    "NotAuthorizedError",
    "TokenExpiredError",
]

# What the client was doing when Spotify answered, for user-facing messages.
PHASE_DESCRIPTIONS: dict[str, str] = {
    "load": "loading your saved credentials",
    "save": "saving your credentials",
    "authorize": "authenticating your account",
    "refresh": "refreshing access to your account",
    "fetch": "requesting the playback state on behalf of your account",
}


class TailSpotifyError(Exception):
    """Base class for every failure this package reports to the user."""

    def __init__(self, message: str, *, phase: str | None = None):
        super().__init__(message)
        self.message = message
        self.phase = phase


class ConfigurationError(TailSpotifyError):
    """The client registration (id, secret, redirect URI) is incomplete."""


class StoreError(TailSpotifyError):
    """The persisted credential record could not be read or written."""


class AuthorizationError(TailSpotifyError):
    """Spotify rejected a token request with a structured error body.

    ``error`` and ``error_description`` are kept verbatim from the server.
    """

    def __init__(self, error: str, error_description: str, *, phase: str | None = None):
        self.error = error
        self.error_description = error_description
        action = PHASE_DESCRIPTIONS.get(phase or "", "talking to Spotify")
        super().__init__(
            f"Spotify returned the following while {action}: "
            f"{error_description} ({error}), please try again.",
            phase=phase,
        )


class TransportError(TailSpotifyError):
    """No usable response: network failure, or an error body we can't read."""

    def __init__(
        self,
        message: str = "Unknown error",
        *,
        phase: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, phase=phase)
        self.status_code = status_code


class ParseError(TailSpotifyError):
    """A response body could not be decoded into the expected shape."""


class InputError(TailSpotifyError):
    """The interactive authorization code was empty."""


class NotAuthorizedError(TailSpotifyError):
    """A refresh was requested for a credential that was never authorized."""


class TokenExpiredError(TailSpotifyError):
    """The access token is still expired after the single allowed refresh."""

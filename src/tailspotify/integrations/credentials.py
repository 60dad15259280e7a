# Credential Manager: OAuth credential lifecycle for one CLI invocation.
# Created: 2026-10-19
#
# Loads the stored credential, decides whether it is usable as-is, needs a
# refresh, or needs interactive authorization, and persists every change.

from __future__ import annotations

import dataclasses
import enum
import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tailspotify.config import DEFAULT_SCOPES
from tailspotify.errors import (
    AuthorizationError,
    ConfigurationError,
    InputError,
    TokenExpiredError,
)
from tailspotify.integrations.oauth import TokenClient, TokenGrant
from tailspotify.integrations.token_store import Credential, CredentialStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CredentialState(enum.Enum):
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED_VALID = "authorized_valid"
    AUTHORIZED_EXPIRED = "authorized_expired"


def _no_code_reader(url: str) -> str:
    raise InputError(
        f"Authorization required, visit {url} and run with --setup", phase="authorize"
    )


class CredentialManager:
    """Owns the live credential for the duration of one invocation.

    Args:
        store: Where the credential is loaded from and saved to.
        token_client: Token endpoint client (code exchange and refresh).
        scopes: Scopes requested during interactive authorization.
        code_reader: Called with the authorize URL; returns the code the
            user pasted back. Defaults to refusing interactive auth.
        clock: Source of "now" in seconds since the epoch.
    """

    def __init__(
        self,
        store: CredentialStore,
        token_client: TokenClient,
        *,
        scopes: list[str] | None = None,
        code_reader: Callable[[str], str] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.token_client = token_client
        self.scopes = list(scopes) if scopes is not None else list(DEFAULT_SCOPES)
        self.code_reader = code_reader or _no_code_reader
        self.clock = clock

    def state(self, credential: Credential, now: float | None = None) -> CredentialState:
        if not credential.is_authorized:
            return CredentialState.UNAUTHORIZED
        if credential.is_expired(self.clock() if now is None else now):
            return CredentialState.AUTHORIZED_EXPIRED
        return CredentialState.AUTHORIZED_VALID

    def authorize(self, credential: Credential) -> Credential:
        """Run interactive authorization and persist the new token pair."""
        self._require_registration(credential)

        url = self.token_client.authorize_url(credential, self.scopes)
        code = (self.code_reader(url) or "").strip()
        if not code:
            raise InputError(
                "There was an error parsing your input: empty authorization code",
                phase="authorize",
            )

        grant = self.token_client.exchange_code(code, credential)
        authorized = dataclasses.replace(
            credential,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or "",
            expires_at=self._expires_at(grant),
        )
        self.store.save(authorized)
        logger.info("Spotify account authorized, token valid for %ds", grant.expires_in)
        return authorized

    def refresh(self, credential: Credential) -> Credential:
        """Refresh the access token once and persist the result.

        A failed refresh leaves the stored credential untouched.
        """
        self._require_registration(credential)

        try:
            grant = self.token_client.refresh(credential)
        except AuthorizationError as e:
            if e.error == "invalid_grant":
                logger.error(
                    "Spotify no longer accepts the saved refresh token, "
                    "run with --setup to re-authorize"
                )
            raise

        refreshed = dataclasses.replace(
            credential,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or credential.refresh_token,
            expires_at=self._expires_at(grant),
        )
        self.store.save(refreshed)
        if grant.refresh_token and grant.refresh_token != credential.refresh_token:
            logger.info("Refresh token rotated")
        logger.info("Access token refreshed (expires in %ds)", grant.expires_in)
        return refreshed

    def ensure_valid(self, *, force_authorize: bool = False) -> Credential:
        """Return a credential whose access token is valid right now.

        Walks UNAUTHORIZED -> authorize, AUTHORIZED_EXPIRED -> refresh (at
        most once), AUTHORIZED_VALID -> as loaded, without saving.
        """
        credential = self.store.load()
        state = self.state(credential)
        logger.debug("Credential state: %s", state.value)

        if force_authorize or state is CredentialState.UNAUTHORIZED:
            phase = "authorize"
            credential = self.authorize(credential)
        elif state is CredentialState.AUTHORIZED_EXPIRED:
            phase = "refresh"
            credential = self.refresh(credential)
        else:
            return credential

        if self.state(credential) is not CredentialState.AUTHORIZED_VALID:
            raise TokenExpiredError(
                "Spotify issued an access token that is already expired, check your system clock",
                phase=phase,
            )
        return credential

    def call(self, fn: Callable[[str], T]) -> T:
        """Invoke ``fn`` with an access token certified valid at call time."""
        credential = self.ensure_valid()
        return fn(credential.access_token)

    def _expires_at(self, grant: TokenGrant) -> int:
        return int(self.clock()) + grant.expires_in

    def _require_registration(self, credential: Credential) -> None:
        missing = credential.missing_registration()
        if missing:
            raise ConfigurationError(
                f"Missing {', '.join(missing)}; add your Spotify app registration to the "
                "credential file or set TAIL_SPOTIFY_CLIENT_ID / TAIL_SPOTIFY_CLIENT_SECRET / "
                "TAIL_SPOTIFY_REDIRECT_URI"
            )

# OAuth: Spotify authorization-code exchange and token refresh.
# Created: 2026-10-19
#
# Talks to the accounts service only. Nothing here touches the stored
# credential; the lifecycle manager applies the returned grants.

from __future__ import annotations

import logging
import urllib.parse

import httpx
from pydantic import BaseModel, Field, ValidationError

from tailspotify.errors import (
    AuthorizationError,
    NotAuthorizedError,
    ParseError,
    TransportError,
)
from tailspotify.integrations.token_store import Credential

logger = logging.getLogger(__name__)


class TokenGrant(BaseModel):
    """Success body of the token endpoint."""

    access_token: str = Field(..., min_length=1)
    token_type: str = "Bearer"
    expires_in: int = Field(..., ge=0)
    refresh_token: str | None = None
    scope: str | None = None


class TokenErrorBody(BaseModel):
    """Error body of the token endpoint (RFC 6749 §5.2)."""

    error: str
    error_description: str = ""


class TokenClient:
    """Client for the Spotify accounts service token endpoint.

    Both grants authenticate the application with HTTP Basic auth built
    from the credential's ``client_id`` and ``client_secret``.
    """

    def __init__(self, http: httpx.Client, accounts_url: str = "https://accounts.spotify.com"):
        self._http = http
        self.accounts_url = accounts_url.rstrip("/")

    @property
    def token_url(self) -> str:
        return f"{self.accounts_url}/api/token"

    def authorize_url(self, credential: Credential, scopes: list[str]) -> str:
        """Build the URL the user visits to grant access."""
        params = {
            "client_id": credential.client_id,
            "response_type": "code",
            "redirect_uri": credential.redirect_uri,
            "scope": " ".join(scopes),
        }
        query = urllib.parse.urlencode(params, quote_via=urllib.parse.quote)
        return f"{self.accounts_url}/authorize?{query}"

    def exchange_code(self, code: str, credential: Credential) -> TokenGrant:
        """Trade an authorization code for an access/refresh token pair."""
        grant = self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": credential.redirect_uri,
            },
            credential,
            phase="authorize",
        )
        if not grant.refresh_token:
            raise ParseError(
                "Token response did not include a refresh_token", phase="authorize"
            )
        return grant

    def refresh(self, credential: Credential) -> TokenGrant:
        """Mint a new access token from the stored refresh token.

        The returned grant may or may not carry a rotated refresh token.
        """
        if not (credential.access_token and credential.refresh_token and credential.expires_at):
            raise NotAuthorizedError(
                "No Spotify authorization to refresh, run with --setup first",
                phase="refresh",
            )
        return self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token,
            },
            credential,
            phase="refresh",
        )

    def _request_token(
        self, form: dict[str, str], credential: Credential, *, phase: str
    ) -> TokenGrant:
        try:
            resp = self._http.post(
                self.token_url,
                data=form,
                auth=httpx.BasicAuth(credential.client_id, credential.client_secret),
            )
        except httpx.HTTPError as e:
            logger.warning("Token request (%s) failed: %s", form["grant_type"], e)
            raise TransportError(f"Unknown error: {e}", phase=phase) from e

        if resp.is_success:
            try:
                grant = TokenGrant.model_validate_json(resp.content)
            except ValidationError as e:
                raise ParseError(
                    f"Could not understand the token response: {e.error_count()} invalid field(s)",
                    phase=phase,
                ) from e
            logger.debug(
                "Token grant (%s) ok, expires in %ds", form["grant_type"], grant.expires_in
            )
            return grant

        try:
            body = TokenErrorBody.model_validate_json(resp.content)
        except ValidationError:
            logger.warning(
                "Token endpoint returned HTTP %d with an unreadable body", resp.status_code
            )
            raise TransportError(
                f"Unknown error (HTTP {resp.status_code})",
                phase=phase,
                status_code=resp.status_code,
            ) from None

        raise AuthorizationError(body.error, body.error_description, phase=phase)

# Tests for integrations/oauth.py: code exchange and token refresh
# Created: 2026-10-19

import base64
import urllib.parse

import httpx
import pytest

from tailspotify.errors import (
    AuthorizationError,
    NotAuthorizedError,
    ParseError,
    TransportError,
)
from tailspotify.integrations.oauth import TokenClient
from tailspotify.integrations.token_store import Credential

REGISTERED = Credential(
    client_id="my-client",
    client_secret="my-secret",
    redirect_uri="http://localhost:8888/callback",
)
AUTHORIZED = Credential(
    client_id="my-client",
    client_secret="my-secret",
    redirect_uri="http://localhost:8888/callback",
    access_token="AT1",
    refresh_token="RT1",
    expires_at=1_700_000_000,
)


def make_client(handler):
    requests = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http = httpx.Client(transport=httpx.MockTransport(record))
    return TokenClient(http), requests


def form(request: httpx.Request) -> dict[str, str]:
    return dict(urllib.parse.parse_qsl(request.content.decode()))


# ---------------------------------------------------------------------------
# authorize_url
# ---------------------------------------------------------------------------


class TestAuthorizeUrl:
    def test_url_shape(self):
        client, _ = make_client(lambda r: httpx.Response(500))
        url = client.authorize_url(
            REGISTERED, ["user-read-currently-playing", "user-read-playback-state"]
        )
        assert url == (
            "https://accounts.spotify.com/authorize?client_id=my-client"
            "&response_type=code"
            "&redirect_uri=http%3A%2F%2Flocalhost%3A8888%2Fcallback"
            "&scope=user-read-currently-playing%20user-read-playback-state"
        )

    def test_custom_accounts_url(self):
        http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        client = TokenClient(http, "http://accounts.test/")
        assert client.token_url == "http://accounts.test/api/token"
        assert client.authorize_url(REGISTERED, []).startswith("http://accounts.test/authorize?")


# ---------------------------------------------------------------------------
# exchange_code
# ---------------------------------------------------------------------------


class TestExchangeCode:
    def test_success_sends_form_and_basic_auth(self):
        client, requests = make_client(
            lambda r: httpx.Response(
                200,
                json={
                    "access_token": "AT1",
                    "token_type": "Bearer",
                    "expires_in": 3600,
                    "refresh_token": "RT1",
                    "scope": "user-read-playback-state",
                },
            )
        )
        grant = client.exchange_code("ABC123", REGISTERED)

        assert grant.access_token == "AT1"
        assert grant.refresh_token == "RT1"
        assert grant.expires_in == 3600

        (request,) = requests
        assert request.method == "POST"
        assert str(request.url) == "https://accounts.spotify.com/api/token"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        expected = base64.b64encode(b"my-client:my-secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert form(request) == {
            "grant_type": "authorization_code",
            "code": "ABC123",
            "redirect_uri": "http://localhost:8888/callback",
        }

    def test_invalid_grant_is_authorization_error(self):
        client, _ = make_client(
            lambda r: httpx.Response(
                400,
                json={
                    "error": "invalid_grant",
                    "error_description": "Authorization code expired",
                },
            )
        )
        with pytest.raises(AuthorizationError) as exc:
            client.exchange_code("ABC123", REGISTERED)

        assert exc.value.error == "invalid_grant"
        assert exc.value.error_description == "Authorization code expired"
        assert exc.value.phase == "authorize"
        assert "Authorization code expired (invalid_grant)" in str(exc.value)

    def test_unreadable_error_body_is_unknown_error(self):
        client, _ = make_client(lambda r: httpx.Response(502, text="<html>Bad Gateway</html>"))
        with pytest.raises(TransportError) as exc:
            client.exchange_code("ABC123", REGISTERED)
        assert exc.value.status_code == 502
        assert "Unknown error" in exc.value.message

    def test_no_response_is_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(refuse)
        with pytest.raises(TransportError) as exc:
            client.exchange_code("ABC123", REGISTERED)
        assert exc.value.status_code is None
        assert exc.value.phase == "authorize"

    def test_malformed_success_body_is_parse_error(self):
        client, _ = make_client(lambda r: httpx.Response(200, text="not json"))
        with pytest.raises(ParseError):
            client.exchange_code("ABC123", REGISTERED)

    def test_missing_refresh_token_is_parse_error(self):
        client, _ = make_client(
            lambda r: httpx.Response(200, json={"access_token": "AT1", "expires_in": 3600})
        )
        with pytest.raises(ParseError):
            client.exchange_code("ABC123", REGISTERED)


# ---------------------------------------------------------------------------
# refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    @pytest.mark.parametrize(
        "credential",
        [
            REGISTERED,
            Credential(refresh_token="RT1", expires_at=1),
            Credential(access_token="AT1", refresh_token="RT1", expires_at=0),
        ],
    )
    def test_never_authorized_fails_without_request(self, credential):
        client, requests = make_client(lambda r: httpx.Response(200))
        with pytest.raises(NotAuthorizedError):
            client.refresh(credential)
        assert requests == []

    def test_success_without_rotation(self):
        client, requests = make_client(
            lambda r: httpx.Response(200, json={"access_token": "AT2", "expires_in": 3600})
        )
        grant = client.refresh(AUTHORIZED)

        assert grant.access_token == "AT2"
        assert grant.refresh_token is None
        assert form(requests[0]) == {"grant_type": "refresh_token", "refresh_token": "RT1"}
        assert requests[0].headers["Authorization"].startswith("Basic ")

    def test_success_with_rotation(self):
        client, _ = make_client(
            lambda r: httpx.Response(
                200, json={"access_token": "AT2", "expires_in": 3600, "refresh_token": "RT2"}
            )
        )
        assert client.refresh(AUTHORIZED).refresh_token == "RT2"

    def test_revoked_refresh_token(self):
        client, _ = make_client(
            lambda r: httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Refresh token revoked"}
            )
        )
        with pytest.raises(AuthorizationError) as exc:
            client.refresh(AUTHORIZED)
        assert exc.value.phase == "refresh"
        assert "refreshing access" in str(exc.value)

    def test_timeout_is_transport_error(self):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client, _ = make_client(slow)
        with pytest.raises(TransportError) as exc:
            client.refresh(AUTHORIZED)
        assert exc.value.phase == "refresh"

"""Shared fixtures for the test suite."""

from itertools import count
from urllib.parse import parse_qs

import httpx
import pytest

from api.config import Settings
from sources.lseg.credentials import CredentialConfig, CredentialStore
from sources.lseg.proxy import LsegProxy, TokenCache


TEST_ENV = {
    "RDP_USER_MARKET_DATA": "md-user",
    "RDP_PASSWORD_MARKET_DATA": "md-pass",
    "RDP_APP_KEY_MARKET_DATA": "mdkey-1234567890",
    "RDP_USER_NEWS": "news-user",
    "RDP_PASSWORD_NEWS": "news-pass",
    "RDP_APP_KEY_NEWS": "newskey-1234567890",
    "RDP_USER_LIPPER": "  lipper-user  ",
    "RDP_PASSWORD_LIPPER": "lipper-pass",
    "RDP_APP_KEY_LIPPER": "lipperkey-123456",
    "RDP_USER_DEFAULT": "default-user",
    "RDP_PASSWORD_DEFAULT": "default-pass",
    "RDP_APP_KEY_DEFAULT": "defaultkey-12345",
}


class FakePlatform:
    """
    Stand-in for the Data Platform behind an httpx.MockTransport.

    Token requests get token-1, token-2, ...; API requests consume
    `api_responses` as (status, json) pairs, then default to 200.
    """

    def __init__(self):
        self.token_requests = []
        self.api_requests = []
        self.api_responses = []
        self.auth_status = 200
        self._tokens = (f"token-{i}" for i in count(1))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "auth.test":
            self.token_requests.append(request)
            if self.auth_status != 200:
                return httpx.Response(self.auth_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": next(self._tokens), "expires_in": "599"})

        self.api_requests.append(request)
        if self.api_responses:
            status, body = self.api_responses.pop(0)
        else:
            status, body = 200, {"ok": True}
        return httpx.Response(status, json=body)

    @staticmethod
    def form(request: httpx.Request) -> dict:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    def bearer(self, index: int) -> str:
        return self.api_requests[index].headers["Authorization"]


@pytest.fixture
def test_settings():
    """Settings pointed at fake hosts, with no pause between Lipper calls."""
    s = Settings()
    s.RDP_AUTH_URL = "https://auth.test/auth/oauth2/v1/token"
    s.RDP_BASE_URL = "https://api.test"
    s.LIPPER_CALL_DELAY_SECONDS = 0
    return s


@pytest.fixture
def credential_config():
    return CredentialConfig.from_env(TEST_ENV)


@pytest.fixture
def store(credential_config):
    return CredentialStore(credential_config)


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def make_proxy(store, test_settings, platform):
    """Factory for an LsegProxy wired to the fake platform."""
    def _make(token_cache=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(platform))
        return LsegProxy(store, test_settings, token_cache=token_cache if token_cache is not None else TokenCache(), client=client)
    return _make

"""
Token-managed proxy for the LSEG Data Platform REST API.

Exchanges credential profiles for OAuth2 bearer tokens (password grant),
caches one token per application key, and relays arbitrary REST calls.
A 401 from the platform triggers exactly one retry with a fresh token.
https://developers.lseg.com/en/api-catalog/refinitiv-data-platform
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx

from utils.log import mask_key

from .credentials import CredentialProfile, CredentialStore

logger = logging.getLogger(__name__)


class TokenCache:
    """Bearer tokens keyed by application key. No expiry, no eviction."""

    def __init__(self):
        self._tokens: Dict[str, str] = {}

    def get(self, app_key: str) -> Optional[str]:
        return self._tokens.get(app_key)

    def set(self, app_key: str, token: str) -> None:
        self._tokens[app_key] = token

    def __contains__(self, app_key: str) -> bool:
        return app_key in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)


@dataclass
class ProxyRequest:
    """One downstream call: method, path, and query (GET) or body (others)."""
    method: str = "GET"
    endpoint: str = "/"
    query: Optional[Dict[str, Any]] = None
    body: Any = None

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> "ProxyRequest":
        return cls(
            method=(options.get("method") or "GET").upper(),
            endpoint=options.get("endpoint") or "/",
            query=options.get("query"),
            body=options.get("body"),
        )

    @property
    def is_get(self) -> bool:
        return self.method.upper() == "GET"


def describe_error(exc: Exception) -> Tuple[int, Any]:
    """
    Status code and details for a failed call, passed through unmodified.

    Returns:
        (downstream status or 500, downstream JSON body / text / exception message)
    """
    response = getattr(exc, "response", None)
    if response is None:
        return 500, str(exc) or exc.__class__.__name__

    try:
        details = response.json()
    except ValueError:
        details = response.text or str(exc)
    return response.status_code, details


def _payload(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class LsegProxy:
    """
    Relay for Data Platform REST calls.

    Usage:
        proxy = LsegProxy(CredentialStore(CredentialConfig.from_env()), settings)
        data = await proxy.call_api("news-headlines", "NEWS", {"endpoint": "/data/news/v1/headlines"})
    """

    def __init__(
        self,
        store: CredentialStore,
        settings,
        token_cache: Optional[TokenCache] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.settings = settings
        self.token_cache = token_cache if token_cache is not None else TokenCache()
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        # Created lazily so the pool binds to the serving event loop
        if self._client is None:
            kwargs = {}
            if self.settings.HTTP_TIMEOUT is not None:
                kwargs["timeout"] = self.settings.HTTP_TIMEOUT
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ----------------------------------------------------------------
    # Tokens
    # ----------------------------------------------------------------

    async def refresh_access_token(self, credentials: CredentialProfile) -> str:
        """
        Exchange a profile's credentials for a new bearer token and cache it.

        Raises:
            httpx.HTTPStatusError / httpx.RequestError from the token endpoint, unchanged.
        """
        app_key = credentials.app_key
        logger.info(f"Refreshing token for app key {mask_key(app_key)}")
        form = {
            "username": credentials.username or "",
            "password": credentials.password or "",
            "client_id": app_key,
            "grant_type": "password",
            "scope": self.settings.RDP_SCOPE,
            "takeExclusiveSignOnControl": "true",
        }
        try:
            resp = await self.client.post(
                self.settings.RDP_AUTH_URL,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching RDP token: {describe_error(e)[1]}")
            raise

        token = resp.json()["access_token"]
        self.token_cache.set(app_key, token)
        return token

    async def get_access_token(self, credentials: CredentialProfile, force_refresh: bool = False) -> str:
        """Cached token for the profile's app key, or a fresh one."""
        if not force_refresh:
            cached = self.token_cache.get(credentials.app_key)
            if cached:
                return cached
        return await self.refresh_access_token(credentials)

    # ----------------------------------------------------------------
    # Calls
    # ----------------------------------------------------------------

    async def _send(self, token: str, request: ProxyRequest) -> Any:
        resp = await self.client.request(
            request.method,
            f"{self.settings.RDP_BASE_URL}{request.endpoint}",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            params=request.query if request.is_get else None,
            json=None if request.is_get else request.body,
        )
        resp.raise_for_status()
        return _payload(resp)

    async def call_api(
        self,
        api_id: str,
        profile_name: str,
        options,
        is_retry: bool = False,
    ) -> Any:
        """
        Relay one call to the Data Platform.

        Args:
            api_id: Caller's API identifier (logging only)
            profile_name: Credential profile (case-insensitive)
            options: ProxyRequest or dict with method, endpoint, query, body
            is_retry: Start in the fresh-token-attempted state (no 401 retry)

        Returns:
            Downstream response payload, verbatim

        Raises:
            httpx.HTTPStatusError: downstream failure (a 401 only after the retry)
            httpx.RequestError: transport failure
            KeyError / ValueError: token response without a JSON access_token
        """
        request = options if isinstance(options, ProxyRequest) else ProxyRequest.from_options(options)
        credentials = self.store.get_credentials(profile_name)
        logger.info(f"[{api_id}] {request.method} {request.endpoint} using profile {credentials.name}")

        fresh_token_attempted = is_retry
        force_refresh = False
        while True:
            token = await self.get_access_token(credentials, force_refresh=force_refresh)
            try:
                return await self._send(token, request)
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 401 and not fresh_token_attempted:
                    logger.warning("Token expired or invalid (401). Retrying with fresh token...")
                    fresh_token_attempted = True
                    force_refresh = True
                    continue
                logger.error(f"[{api_id}] API call error: {describe_error(e)[1]}")
                raise
            except httpx.RequestError as e:
                logger.error(f"[{api_id}] API call error: {e}")
                raise

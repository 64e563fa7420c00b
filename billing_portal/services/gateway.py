from __future__ import annotations

import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any

import httpx

from ..core.config import settings
from ..core.errors import AuthenticationRequired, RequestError
from ..deps.ui_auth import TokenStore

logger = logging.getLogger(__name__)

TRANSPORT_FAILURE_MESSAGE = "Unable to reach the billing service"


def create_http_client(base_url: str | None = None, timeout: float | None = None) -> httpx.AsyncClient:
    """Build the application-wide client used for every backend call.

    The client is shared by all browsers, so its own cookie jar refuses every
    cookie; each browser's backend cookies travel through its ``TokenStore``.
    """

    jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    return httpx.AsyncClient(
        base_url=base_url or settings.BACKEND_BASE_URL,
        timeout=httpx.Timeout(timeout or settings.BACKEND_TIMEOUT),
        cookies=jar,
    )


def _error_message(response: httpx.Response) -> str:
    fallback = f"HTTP Error: {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return fallback


class BackendGateway:
    """Single choke point for requests to the billing backend.

    Every call carries ``Content-Type: application/json``, the bearer token
    when one is stored, and the backend cookies remembered for this browser.
    A 401 from any endpoint wipes the stored credentials and raises
    ``AuthenticationRequired``, which the application turns into a redirect
    to the login page.
    """

    def __init__(self, client: httpx.AsyncClient, store: TokenStore) -> None:
        self._client = client
        self._store = store

    @property
    def store(self) -> TokenStore:
        return self._store

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        token = self._store.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        cookies = self._store.cookies
        if cookies:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in cookies.items())
        return headers

    async def call(self, endpoint: str, method: str = "GET", body: Any | None = None) -> Any | None:
        method = method.upper()
        try:
            response = await self._client.request(
                method,
                endpoint,
                headers=self._headers(),
                json=body,
            )
        except httpx.HTTPError as exc:
            logger.error(
                "backend.transport_failure",
                extra={"extra_data": {"method": method, "endpoint": endpoint, "error": str(exc)}},
            )
            raise RequestError(TRANSPORT_FAILURE_MESSAGE) from exc

        logger.debug(
            "backend.call",
            extra={"extra_data": {"method": method, "endpoint": endpoint, "status": response.status_code}},
        )
        self._store.merge_cookies(dict(response.cookies))

        if response.status_code == 401:
            logger.warning("backend.unauthorized", extra={"extra_data": {"endpoint": endpoint}})
            self._store.clear()
            raise AuthenticationRequired()

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "backend.rejected",
                extra={
                    "extra_data": {
                        "method": method,
                        "endpoint": endpoint,
                        "status": response.status_code,
                        "error": message,
                    }
                },
            )
            raise RequestError(message, status_code=response.status_code)

        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.error("backend.invalid_json", extra={"extra_data": {"endpoint": endpoint}})
            raise RequestError("Invalid response from the billing service", status_code=response.status_code) from exc

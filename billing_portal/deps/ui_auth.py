"""Per-browser persistence of the backend credentials.

WHAT: Reads and writes the auth token, the cached user, and the backend's
cookies inside the signed Starlette session cookie.
WHEN: Used by the request gateway on every backend call and by the login,
OAuth-callback, and logout handlers.
WHY: The session cookie plays the part that browser local storage plays for a
single-page app: it survives page loads and belongs to exactly one browser.
HOW: ``TokenStore`` wraps any mutable mapping, so tests can hand it a plain
dict instead of a real request session.
"""

from __future__ import annotations

from typing import Any, MutableMapping

from fastapi import Request

TOKEN_KEY = "token"
USER_KEY = "user"
COOKIES_KEY = "backend_cookies"


class TokenStore:
    def __init__(self, storage: MutableMapping[str, Any]) -> None:
        self._storage = storage

    @property
    def token(self) -> str | None:
        value = self._storage.get(TOKEN_KEY)
        return value or None

    def set_token(self, token: str) -> None:
        self._storage[TOKEN_KEY] = token

    def clear(self) -> None:
        """Forget the token together with everything derived from it."""

        for key in (TOKEN_KEY, USER_KEY, COOKIES_KEY):
            self._storage.pop(key, None)

    @property
    def cached_user(self) -> dict[str, Any] | None:
        value = self._storage.get(USER_KEY)
        return dict(value) if isinstance(value, dict) else None

    def cache_user(self, user: dict[str, Any] | None) -> None:
        if user is None:
            self._storage.pop(USER_KEY, None)
        else:
            self._storage[USER_KEY] = user

    @property
    def cookies(self) -> dict[str, str]:
        value = self._storage.get(COOKIES_KEY)
        return dict(value) if isinstance(value, dict) else {}

    def merge_cookies(self, cookies: dict[str, str]) -> None:
        if not cookies:
            return
        jar = self.cookies
        jar.update(cookies)
        self._storage[COOKIES_KEY] = jar


def get_token_store(request: Request) -> TokenStore:
    return TokenStore(request.session)

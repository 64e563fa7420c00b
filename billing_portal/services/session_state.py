from __future__ import annotations

import logging

from pydantic import ValidationError

from ..core.errors import RequestError
from ..deps.ui_auth import TokenStore
from ..schemas.auth import User
from .gateway import BackendGateway

logger = logging.getLogger(__name__)

CURRENT_USER_ENDPOINT = "/auth/user"


class SessionState:
    """Authentication state for one browser session.

    Starts with ``loading=True``. ``initialize`` settles it exactly once;
    until then nothing should decide between protected and public content.
    Consumers mutate it only through ``set_authenticated``, ``set_user`` and
    ``logout``.
    """

    def __init__(self, store: TokenStore) -> None:
        self._store = store
        self._authenticated = False
        self._user: User | None = None
        self._loading = True

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def email(self) -> str:
        return self._user.email if self._user else ""

    def set_authenticated(self, value: bool) -> None:
        self._authenticated = bool(value)

    def set_user(self, user: User | None) -> None:
        self._user = user
        self._store.cache_user(user.model_dump(by_alias=True) if user else None)

    def logout(self) -> None:
        """Drop the local credentials. The backend session is left alone."""

        self._store.clear()
        self._authenticated = False
        self._user = None

    async def initialize(self, gateway: BackendGateway) -> None:
        if not self._loading:
            return
        try:
            await self._resolve(gateway)
        finally:
            self._loading = False

    async def _resolve(self, gateway: BackendGateway) -> None:
        if not self._store.token:
            self._reset()
            return

        cached = self._store.cached_user
        if cached and cached.get("email"):
            self._user = User.model_validate(cached)
            self._authenticated = True
            return

        user = await fetch_current_user(gateway)
        if user is None:
            self.logout()
            return
        self.set_user(user)
        self.set_authenticated(True)

    def _reset(self) -> None:
        self._authenticated = False
        self._user = None


async def fetch_current_user(gateway: BackendGateway) -> User | None:
    """Ask the backend who is signed in; ``None`` when nobody usable is."""

    try:
        payload = await gateway.call(CURRENT_USER_ENDPOINT)
    except RequestError as exc:
        # AuthenticationRequired included: a failed check means signed out.
        logger.warning(
            "session.check_failed",
            extra={"extra_data": {"error": exc.message, "status": exc.status_code}},
        )
        return None
    if not isinstance(payload, dict):
        return None
    try:
        user = User.model_validate(payload)
    except ValidationError:
        logger.warning("session.unexpected_payload", extra={"extra_data": {"endpoint": CURRENT_USER_ENDPOINT}})
        return None
    if not user.email:
        return None
    return user

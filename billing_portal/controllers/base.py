"""The state machine behind every billing form.

Each page drives one ``ViewController``:

    IDLE -> SUBMITTING -> SUCCESS | ERROR

``SUCCESS`` falls back to ``IDLE`` once its display window has passed
(``tick``); ``ERROR`` stays until the user edits a field. Destructive pages
use ``activate`` instead of ``submit`` and pass through
``AWAITING_CONFIRMATION``: the first activation arms, the second performs the
call, and any edit in between disarms.

Controllers never talk HTTP themselves. They receive an ``action`` coroutine
(usually a ``BillingApi`` method) and only translate its outcome into state.
"""

from __future__ import annotations

import hashlib
import json
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping

from ..core.errors import AuthenticationRequired, RequestError, ValidationFailure

Validator = Callable[[Mapping[str, str]], Any]
Action = Callable[[Any], Awaitable[Any]]


class ViewState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


def _accept_values(values: Mapping[str, str]) -> dict[str, str]:
    return dict(values)


class ViewController:
    def __init__(
        self,
        fields: Iterable[str],
        *,
        validate: Validator | None = None,
        success_message: str = "Saved successfully!",
        success_seconds: float = 3,
        reset_on_success: bool = True,
        reset_on_expire: bool = False,
        values: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.fields = tuple(fields)
        self.validate = validate or _accept_values
        self.success_message = success_message
        self.success_seconds = success_seconds
        self.reset_on_success = reset_on_success
        self.reset_on_expire = reset_on_expire
        self._clock = clock

        self.values: dict[str, str] = self._blank()
        if values:
            for name in self.fields:
                if name in values:
                    self.values[name] = str(values[name] if values[name] is not None else "")
        self.state = ViewState.IDLE
        self.error = ""
        self.result: Any = None
        self.success_until: float | None = None

    def _blank(self) -> dict[str, str]:
        return {name: "" for name in self.fields}

    @property
    def armed(self) -> bool:
        return self.state is ViewState.AWAITING_CONFIRMATION

    @property
    def busy(self) -> bool:
        return self.state is ViewState.SUBMITTING

    def edit(self, field: str, value: str) -> None:
        if field not in self.values:
            raise KeyError(field)
        self.values[field] = value
        if self.state in (ViewState.ERROR, ViewState.AWAITING_CONFIRMATION):
            self.state = ViewState.IDLE
        self.error = ""

    def reset(self) -> None:
        self.values = self._blank()
        self.state = ViewState.IDLE
        self.error = ""
        self.result = None
        self.success_until = None

    def fail(self, message: str) -> None:
        self.state = ViewState.ERROR
        self.error = message

    async def submit(self, action: Action) -> ViewState:
        if self.busy:
            return self.state
        try:
            prepared = self.validate(self.values)
        except ValidationFailure as exc:
            self.fail(exc.message)
            return self.state

        self.state = ViewState.SUBMITTING
        self.error = ""
        try:
            result = await action(prepared)
        except AuthenticationRequired:
            self.state = ViewState.IDLE
            raise
        except RequestError as exc:
            self.fail(exc.message)
            return self.state

        self.result = result
        self.state = ViewState.SUCCESS
        self.success_until = self._clock() + self.success_seconds
        if self.reset_on_success:
            self.values = self._blank()
        return self.state

    async def activate(self, action: Action) -> ViewState:
        if self.state is ViewState.AWAITING_CONFIRMATION:
            return await self.submit(action)
        try:
            self.validate(self.values)
        except ValidationFailure as exc:
            self.fail(exc.message)
            return self.state
        self.state = ViewState.AWAITING_CONFIRMATION
        self.error = ""
        return self.state

    def tick(self, now: float | None = None) -> ViewState:
        if self.state is ViewState.SUCCESS and self.success_until is not None:
            current = self._clock() if now is None else now
            if current >= self.success_until:
                self.state = ViewState.IDLE
                self.success_until = None
                if self.reset_on_expire:
                    self.reset()
        return self.state

    # Server-rendered pages cannot keep the controller between requests, so
    # the armed state travels in the form as a digest of the armed values.

    def snapshot(self) -> str:
        encoded = json.dumps(self.values, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()

    def restore_confirmation(self, snapshot: str | None) -> bool:
        """Re-arm when the submitted digest matches the current values."""

        if snapshot and snapshot == self.snapshot():
            self.state = ViewState.AWAITING_CONFIRMATION
            return True
        return False

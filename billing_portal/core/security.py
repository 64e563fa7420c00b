"""Who may see what.

There is exactly one authorization rule: an authenticated employee whose
email starts with ``finance`` (any case) may use the billing pages. Every
place that needs the rule (the login redirect, the OAuth callback, and the
route guard) goes through ``is_finance_role``.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from ..schemas.auth import User

FINANCE_EMAIL_PREFIX = "finance"

EMPLOYEE_HOME = "/employee"
INVALID_ACCESS_PATH = "/invalid-access"
LOGIN_PATH = "/login"


class AccessDecision(str, Enum):
    WAIT = "wait"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    SHOW_RESTRICTED = "show_restricted"
    ALLOW = "allow"


class SessionView(Protocol):
    @property
    def loading(self) -> bool: ...

    @property
    def authenticated(self) -> bool: ...

    @property
    def user(self) -> User | None: ...


def is_finance_role(email: str | None) -> bool:
    return (email or "").lower().startswith(FINANCE_EMAIL_PREFIX)


def decide(session: SessionView, requires_finance_role: bool = False) -> AccessDecision:
    if session.loading:
        return AccessDecision.WAIT
    if not session.authenticated:
        return AccessDecision.REDIRECT_TO_LOGIN
    if requires_finance_role:
        email = session.user.email if session.user else ""
        if not is_finance_role(email):
            return AccessDecision.SHOW_RESTRICTED
    return AccessDecision.ALLOW


def landing_path_for(user: User | None) -> str:
    """Where a freshly signed-in user should go."""

    if user is not None and is_finance_role(user.email):
        return EMPLOYEE_HOME
    return INVALID_ACCESS_PATH

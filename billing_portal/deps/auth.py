from __future__ import annotations

import httpx
from fastapi import Depends, Request

from ..core.security import AccessDecision, decide
from ..middlewares import principal_ctx_var
from ..services.billing_api import BillingApi
from ..services.gateway import BackendGateway, create_http_client
from ..services.session_state import SessionState
from .ui_auth import TokenStore, get_token_store


class AccessInterrupt(Exception):
    """Raised by the route guard when the page must not be rendered."""

    def __init__(self, decision: AccessDecision, session: SessionState) -> None:
        super().__init__(decision.value)
        self.decision = decision
        self.session = session


def get_http_client(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http_client", None)
    if client is None or client.is_closed:
        client = create_http_client()
        request.app.state.http_client = client
    return client


def get_gateway(
    client: httpx.AsyncClient = Depends(get_http_client),
    store: TokenStore = Depends(get_token_store),
) -> BackendGateway:
    return BackendGateway(client, store)


def get_billing_api(gateway: BackendGateway = Depends(get_gateway)) -> BillingApi:
    return BillingApi(gateway)


def _set_principal(request: Request, principal: str | None) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def get_session_state(
    request: Request,
    gateway: BackendGateway = Depends(get_gateway),
) -> SessionState:
    session = SessionState(gateway.store)
    await session.initialize(gateway)
    if session.authenticated:
        _set_principal(request, session.email)
    return session


async def require_login(session: SessionState = Depends(get_session_state)) -> SessionState:
    decision = decide(session, requires_finance_role=False)
    if decision is not AccessDecision.ALLOW:
        raise AccessInterrupt(decision, session)
    return session


async def require_finance(session: SessionState = Depends(get_session_state)) -> SessionState:
    decision = decide(session, requires_finance_role=True)
    if decision is not AccessDecision.ALLOW:
        raise AccessInterrupt(decision, session)
    return session

"""Beginner-friendly overview for this module.

WHAT: Login, OAuth completion, logout, and the access-denied page.
WHEN: Before anyone reaches the employee pages, and whenever the route guard
refuses a request.
WHY: Signing in happens at the backend (Google OAuth); this portal only has to
send the browser there, pick up the token on the way back, and decide where
the user lands.
HOW: ``/login/google`` redirects to the backend, the backend redirects to
``/oauth-callback?token=...``, and the callback stores the token, asks the
backend who signed in, and routes by role.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette import status

from ..core.config import settings
from ..core.jinja import get_templates
from ..core.security import AccessDecision, LOGIN_PATH, landing_path_for
from ..deps.auth import AccessInterrupt, get_gateway, get_session_state, require_login
from ..deps.ui_auth import TokenStore, get_token_store
from ..services.gateway import BackendGateway
from ..services.session_state import SessionState, fetch_current_user

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()


@router.get("/")
def root():
    return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_302_FOUND)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, session: SessionState = Depends(get_session_state)):
    if session.authenticated:
        return RedirectResponse(url=landing_path_for(session.user), status_code=status.HTTP_302_FOUND)
    return templates.TemplateResponse(request, "login.html", {"error": request.query_params.get("error", "")})


@router.get("/login/google")
def login_with_google():
    return RedirectResponse(url=settings.oauth_login_url, status_code=status.HTTP_302_FOUND)


@router.get("/oauth-callback", response_class=HTMLResponse)
async def oauth_callback(
    request: Request,
    token: str | None = None,
    gateway: BackendGateway = Depends(get_gateway),
):
    store = gateway.store
    if token:
        store.clear()
        store.set_token(token)

    session = SessionState(store)
    user = await fetch_current_user(gateway)
    if user is None:
        logger.warning("auth.oauth_failed", extra={"extra_data": {"token_supplied": bool(token)}})
        session.logout()
        return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_302_FOUND)

    session.set_user(user)
    session.set_authenticated(True)
    logger.info("auth.signed_in", extra={"extra_data": {"principal": user.email}})
    return RedirectResponse(url=landing_path_for(user), status_code=status.HTTP_302_FOUND)


@router.api_route("/logout", methods=["GET", "POST"])
def logout(store: TokenStore = Depends(get_token_store)):
    SessionState(store).logout()
    return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_302_FOUND)


@router.get("/invalid-access", response_class=HTMLResponse)
def invalid_access(request: Request, session: SessionState = Depends(require_login)):
    return templates.TemplateResponse(request, "invalid_access.html", {"user": session.user})


async def access_interrupt_handler(request: Request, exc: AccessInterrupt):
    if exc.decision is AccessDecision.WAIT:
        return templates.TemplateResponse(
            request, "loading.html", {"refresh_url": str(request.url)}, status_code=status.HTTP_202_ACCEPTED
        )
    if exc.decision is AccessDecision.SHOW_RESTRICTED:
        return templates.TemplateResponse(
            request,
            "invalid_access.html",
            {"user": exc.session.user},
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_302_FOUND)

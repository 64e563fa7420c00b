"""Application factory and top-level wiring for the Academic ERP billing portal.

This module brings together configuration, HTML templates, the browser
session, the backend HTTP client, the UI routers, and error handling. Read it
first to see *what* pieces exist and *in which order* they wrap each request.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .core.config import settings
from .core.errors import (
    AuthenticationRequired,
    authentication_required_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .deps.auth import AccessInterrupt
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware
from .services.gateway import create_http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One pooled client for all backend traffic; closed on shutdown.
    app.state.http_client = create_http_client()
    try:
        yield
    finally:
        await app.state.http_client.aclose()


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    # ``mount`` glues the /static URL path to the stylesheet folder.
    app.mount("/static", StaticFiles(directory=str(settings.STATIC_DIR)), name="static")

    # ---------- Middleware ----------
    # Added innermost first: the session is decoded before the request logger
    # and the security headers see the request.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.APP_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.SESSION_HTTPS_ONLY,
    )

    # ---------- Routers ----------
    from .routers import auth_ui as auth_ui_router
    from .routers import ui as ui_router
    from .routers import ui_bills as ui_bills_router
    from .routers import ui_student_bills as ui_student_bills_router

    app.include_router(auth_ui_router.router)
    app.include_router(ui_router.router)
    app.include_router(ui_bills_router.router)
    app.include_router(ui_student_bills_router.router)

    # ---------- Exception handling ----------
    # A 401 from the backend on any page sends the browser back to /login.
    app.add_exception_handler(AuthenticationRequired, authentication_required_handler)
    app.add_exception_handler(AccessInterrupt, auth_ui_router.access_interrupt_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    return app


app = create_app()

__all__ = ["app", "create_app"]

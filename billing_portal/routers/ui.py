"""Beginner-friendly overview for this module.

WHAT: The employee dashboard plus the rendering helper every billing page uses.
WHEN: After the finance-role guard has let the request through.
WHY: Keeps the page chrome (navigation, user badge, alerts) in one place.
HOW: ``render_view`` hands a ``ViewController`` to a template; the template
reads its state to show the loading, success, error, or confirmation blocks.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from starlette import status

from ..controllers.base import ViewController, ViewState
from ..core.jinja import get_templates
from ..deps.auth import require_finance
from ..services.session_state import SessionState

templates = get_templates()

router = APIRouter(prefix="/employee", dependencies=[Depends(require_finance)])

NAV = [
    (
        "Bills",
        [
            ("Add Bill", "/employee/bills/add"),
            ("View All Bills", "/employee/bills/all"),
            ("Update Bill", "/employee/bills/update"),
            ("Delete Bill", "/employee/bills/delete"),
        ],
    ),
    (
        "Assign Bills",
        [
            ("Assign to Student", "/employee/student-bills/assign-roll"),
            ("Assign to Domain", "/employee/student-bills/assign-domain"),
            ("View Student Bills", "/employee/student-bills/view"),
            ("Delete All Bills", "/employee/student-bills/delete-student"),
            ("Delete Specific Bill", "/employee/student-bills/delete-specific"),
        ],
    ),
]


def render_view(
    request: Request,
    template: str,
    session: SessionState,
    view: ViewController | None = None,
    *,
    status_code: int | None = None,
    **context: Any,
):
    if status_code is None:
        failed = view is not None and view.state is ViewState.ERROR
        status_code = status.HTTP_400_BAD_REQUEST if failed else status.HTTP_200_OK
    payload = {
        "user": session.user,
        "nav": NAV,
        "view": view,
        "states": ViewState,
        **context,
    }
    return templates.TemplateResponse(request, template, payload, status_code=status_code)


@router.get("", response_class=HTMLResponse)
def dashboard(request: Request, session: SessionState = Depends(require_finance)):
    return render_view(request, "dashboard.html", session)

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse

from ..controllers.base import ViewState
from ..controllers.student_bills import (
    assign_to_domain_controller,
    assign_to_roll_controller,
    delete_student_bill_controller,
    delete_student_bills_controller,
    student_bills_controller,
)
from ..core.config import settings
from ..deps.auth import get_billing_api, require_finance
from ..services.billing_api import BillingApi
from ..services.session_state import SessionState
from .ui import render_view

router = APIRouter(prefix="/employee/student-bills", dependencies=[Depends(require_finance)])


@router.get("/assign-roll", response_class=HTMLResponse)
def assign_roll_page(request: Request, session: SessionState = Depends(require_finance)):
    return render_view(request, "student_bills/assign_roll.html", session, assign_to_roll_controller())


@router.post("/assign-roll", response_class=HTMLResponse)
async def assign_roll_submit(
    request: Request,
    roll_number: str = Form("", alias="rollNumber"),
    bill_id: str = Form("", alias="billId"),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = assign_to_roll_controller({"rollNumber": roll_number, "billId": bill_id})
    await view.submit(lambda args: api.assign_to_roll(*args))
    return render_view(request, "student_bills/assign_roll.html", session, view)


@router.get("/assign-domain", response_class=HTMLResponse)
def assign_domain_page(request: Request, session: SessionState = Depends(require_finance)):
    return render_view(
        request,
        "student_bills/assign_domain.html",
        session,
        assign_to_domain_controller(),
        domains=settings.DOMAINS,
    )


@router.post("/assign-domain", response_class=HTMLResponse)
async def assign_domain_submit(
    request: Request,
    domain: str = Form(""),
    bill_id: str = Form("", alias="billId"),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = assign_to_domain_controller({"domain": domain, "billId": bill_id})
    await view.submit(lambda args: api.assign_to_domain(*args))
    return render_view(
        request,
        "student_bills/assign_domain.html",
        session,
        view,
        domains=settings.DOMAINS,
    )


@router.get("/view", response_class=HTMLResponse)
async def student_bills_page(
    request: Request,
    roll_number: str = Query("", alias="rollNumber"),
    searched: bool = Query(False),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = student_bills_controller({"rollNumber": roll_number})
    if searched or roll_number:
        await view.submit(api.student_bills)
    bills = view.result if view.state is ViewState.SUCCESS else []
    total = sum((bill.amount for bill in bills), Decimal("0"))
    return render_view(
        request,
        "student_bills/view.html",
        session,
        view,
        bills=bills,
        total=total,
        searched=view.state in (ViewState.SUCCESS, ViewState.ERROR),
    )


@router.get("/delete-student", response_class=HTMLResponse)
def delete_student_page(request: Request, session: SessionState = Depends(require_finance)):
    return render_view(
        request, "student_bills/delete_student.html", session, delete_student_bills_controller()
    )


@router.post("/delete-student", response_class=HTMLResponse)
async def delete_student_submit(
    request: Request,
    roll_number: str = Form("", alias="rollNumber"),
    confirm: str = Form(""),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = delete_student_bills_controller({"rollNumber": roll_number})
    view.restore_confirmation(confirm)
    await view.activate(api.delete_student_bills)
    return render_view(request, "student_bills/delete_student.html", session, view)


@router.get("/delete-specific", response_class=HTMLResponse)
def delete_specific_page(request: Request, session: SessionState = Depends(require_finance)):
    return render_view(
        request, "student_bills/delete_specific.html", session, delete_student_bill_controller()
    )


@router.post("/delete-specific", response_class=HTMLResponse)
async def delete_specific_submit(
    request: Request,
    roll_number: str = Form("", alias="rollNumber"),
    bill_id: str = Form("", alias="billId"),
    confirm: str = Form(""),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = delete_student_bill_controller({"rollNumber": roll_number, "billId": bill_id})
    view.restore_confirmation(confirm)
    await view.activate(lambda args: api.delete_student_bill(*args))
    return render_view(request, "student_bills/delete_specific.html", session, view)

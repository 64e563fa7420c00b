from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse

from ..controllers.base import ViewState
from ..controllers.bills import (
    add_bill_controller,
    delete_bill_controller,
    list_bills_controller,
    lookup_bill_controller,
    update_bill_controller,
)
from ..deps.auth import get_billing_api, require_finance
from ..schemas.bill import bill_form_values
from ..services.billing_api import BillingApi
from ..services.session_state import SessionState
from .ui import render_view

router = APIRouter(prefix="/employee/bills", dependencies=[Depends(require_finance)])


@router.get("/all", response_class=HTMLResponse)
async def view_bills(
    request: Request,
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = list_bills_controller()
    await view.submit(lambda _: api.list_bills())
    bills = view.result or []
    return render_view(request, "bills/list.html", session, view, bills=bills)


@router.get("/add", response_class=HTMLResponse)
def add_bill_page(request: Request, session: SessionState = Depends(require_finance)):
    return render_view(request, "bills/add.html", session, add_bill_controller())


@router.post("/add", response_class=HTMLResponse)
async def add_bill_submit(
    request: Request,
    description: str = Form(""),
    amount: str = Form(""),
    bill_date: str = Form("", alias="billDate"),
    deadline: str = Form(""),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = add_bill_controller(
        {"description": description, "amount": amount, "billDate": bill_date, "deadline": deadline}
    )
    await view.submit(api.add_bill)
    return render_view(request, "bills/add.html", session, view)


@router.get("/update", response_class=HTMLResponse)
async def update_bill_page(
    request: Request,
    bill_id: str = Query("", alias="billId"),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    bill_id = bill_id.strip()
    lookup = lookup_bill_controller({"billId": bill_id})
    if not bill_id:
        return render_view(request, "bills/update.html", session, lookup, editing=False)
    await lookup.submit(lambda bid: api.get_bill(bid))
    if lookup.state is not ViewState.SUCCESS:
        return render_view(request, "bills/update.html", session, lookup, editing=False)
    view = update_bill_controller(bill_form_values(lookup.result))
    return render_view(request, "bills/update.html", session, view, editing=True)


@router.post("/update", response_class=HTMLResponse)
async def update_bill_submit(
    request: Request,
    bill_id: str = Form("", alias="billId"),
    description: str = Form(""),
    amount: str = Form(""),
    bill_date: str = Form("", alias="billDate"),
    deadline: str = Form(""),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = update_bill_controller(
        {
            "billId": bill_id,
            "description": description,
            "amount": amount,
            "billDate": bill_date,
            "deadline": deadline,
        }
    )
    await view.submit(lambda args: api.update_bill(*args))
    return render_view(request, "bills/update.html", session, view, editing=True)


async def _preview(api: BillingApi, bill_id: str):
    lookup = lookup_bill_controller({"billId": bill_id})
    await lookup.submit(lambda bid: api.get_bill(bid))
    return lookup


@router.get("/delete", response_class=HTMLResponse)
async def delete_bill_page(
    request: Request,
    bill_id: str = Query("", alias="billId"),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    bill_id = bill_id.strip()
    if not bill_id:
        return render_view(request, "bills/delete.html", session, lookup_bill_controller(), bill=None)
    lookup = await _preview(api, bill_id)
    if lookup.state is not ViewState.SUCCESS:
        return render_view(request, "bills/delete.html", session, lookup, bill=None)
    view = delete_bill_controller({"billId": bill_id})
    return render_view(request, "bills/delete.html", session, view, bill=lookup.result)


@router.post("/delete", response_class=HTMLResponse)
async def delete_bill_submit(
    request: Request,
    bill_id: str = Form("", alias="billId"),
    confirm: str = Form(""),
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    view = delete_bill_controller({"billId": bill_id})
    view.restore_confirmation(confirm)
    await view.activate(api.delete_bill)
    if view.state is ViewState.SUCCESS:
        return render_view(request, "bills/delete.html", session, view, bill=None)

    # Armed or failed: show the bill again next to the confirmation/error.
    lookup = await _preview(api, bill_id) if bill_id.strip() else None
    bill = lookup.result if lookup is not None and lookup.state is ViewState.SUCCESS else None
    return render_view(request, "bills/delete.html", session, view, bill=bill)


@router.get("/{bill_id:int}", response_class=HTMLResponse)
async def bill_details(
    request: Request,
    bill_id: int,
    session: SessionState = Depends(require_finance),
    api: BillingApi = Depends(get_billing_api),
):
    lookup = await _preview(api, str(bill_id))
    bill = lookup.result if lookup.state is ViewState.SUCCESS else None
    return render_view(request, "bills/detail.html", session, lookup, bill=bill)

"""Controllers for the bill pages (add, list, look up, update, delete)."""

from __future__ import annotations

from typing import Mapping

from ..core.config import settings
from ..schemas.bill import BillDraft, require_fields
from .base import ViewController

BILL_FIELDS = ("description", "amount", "billDate", "deadline")

# Update and delete flash their result for a shorter time before going back
# to the search form.
SHORT_SUCCESS_SECONDS = 2


def _bill_id(values: Mapping[str, str]) -> str:
    require_fields(values, ("billId", "Bill ID is required"))
    return values["billId"].strip()


def _bill_id_and_draft(values: Mapping[str, str]) -> tuple[str, BillDraft]:
    return _bill_id(values), BillDraft.from_form(values)


def add_bill_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        BILL_FIELDS,
        validate=BillDraft.from_form,
        success_message="Bill added successfully!",
        success_seconds=settings.SUCCESS_DISPLAY_SECONDS,
        values=values,
    )


def list_bills_controller() -> ViewController:
    return ViewController((), reset_on_success=False)


def lookup_bill_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(("billId",), validate=_bill_id, reset_on_success=False, values=values)


def update_bill_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        ("billId",) + BILL_FIELDS,
        validate=_bill_id_and_draft,
        success_message="Bill updated successfully!",
        success_seconds=SHORT_SUCCESS_SECONDS,
        reset_on_success=False,
        reset_on_expire=True,
        values=values,
    )


def delete_bill_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        ("billId",),
        validate=_bill_id,
        success_message="Bill deleted successfully!",
        success_seconds=SHORT_SUCCESS_SECONDS,
        reset_on_success=False,
        reset_on_expire=True,
        values=values,
    )

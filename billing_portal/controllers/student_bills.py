from __future__ import annotations

from typing import Mapping

from ..core.config import settings
from ..core.errors import ValidationFailure
from ..schemas.bill import require_fields
from .base import ViewController


def _roll_and_bill(values: Mapping[str, str]) -> tuple[str, str]:
    require_fields(
        values,
        ("rollNumber", "Roll number is required"),
        ("billId", "Bill ID is required"),
    )
    return values["rollNumber"].strip(), values["billId"].strip()


def _domain_and_bill(values: Mapping[str, str]) -> tuple[str, str]:
    require_fields(
        values,
        ("domain", "Domain is required"),
        ("billId", "Bill ID is required"),
    )
    return values["domain"].strip(), values["billId"].strip()


def _roll(values: Mapping[str, str]) -> str:
    require_fields(values, ("rollNumber", "Roll number is required"))
    return values["rollNumber"].strip()


def _roll_and_bill_together(values: Mapping[str, str]) -> tuple[str, str]:
    if not (values.get("rollNumber") or "").strip() or not (values.get("billId") or "").strip():
        raise ValidationFailure("Both roll number and bill ID are required")
    return values["rollNumber"].strip(), values["billId"].strip()


def assign_to_roll_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        ("rollNumber", "billId"),
        validate=_roll_and_bill,
        success_message="Bill assigned to student successfully!",
        success_seconds=settings.SUCCESS_DISPLAY_SECONDS,
        values=values,
    )


def assign_to_domain_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        ("domain", "billId"),
        validate=_domain_and_bill,
        success_message="Bill assigned to all students in the domain successfully!",
        success_seconds=settings.SUCCESS_DISPLAY_SECONDS,
        values=values,
    )


def student_bills_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(("rollNumber",), validate=_roll, reset_on_success=False, values=values)


def delete_student_bills_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        ("rollNumber",),
        validate=_roll,
        success_message="All bills for student deleted successfully!",
        success_seconds=settings.SUCCESS_DISPLAY_SECONDS,
        values=values,
    )


def delete_student_bill_controller(values: Mapping[str, str] | None = None) -> ViewController:
    return ViewController(
        ("rollNumber", "billId"),
        validate=_roll_and_bill_together,
        success_message="Bill removed from student successfully!",
        success_seconds=settings.SUCCESS_DISPLAY_SECONDS,
        values=values,
    )

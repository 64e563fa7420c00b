"""Pydantic schemas for bills and the student-bill rows the backend returns.

The backend speaks camelCase JSON (``billId``, ``billDate``); the models
accept that shape and expose snake_case attributes to the templates.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.errors import ValidationFailure

CENT = Decimal("0.01")


class Bill(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bill_id: int = Field(alias="billId")
    description: str = ""
    amount: Decimal = Decimal("0")
    bill_date: Optional[date] = Field(default=None, alias="billDate")
    deadline: Optional[date] = None

    def days_left(self, today: date | None = None) -> int | None:
        if self.deadline is None:
            return None
        return (self.deadline - (today or date.today())).days

    def deadline_status(self, today: date | None = None) -> tuple[str, str]:
        """Return ``(text, tone)`` describing how close the deadline is."""

        remaining = self.days_left(today)
        if remaining is None:
            return "-", "neutral"
        if remaining < 0:
            return f"Overdue by {abs(remaining)} days", "danger"
        if remaining == 0:
            return "Due Today", "warning"
        return f"{remaining} days remaining", "ok"


class StudentBill(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[int] = None
    roll_number: Optional[str] = Field(default=None, alias="rollNumber")
    student_name: Optional[str] = Field(default=None, alias="studentName")
    student_email: Optional[str] = Field(default=None, alias="studentEmail")
    bill_id: Optional[int] = Field(default=None, alias="billId")
    description: str = Field(default="", alias="billDescription")
    amount: Decimal = Field(default=Decimal("0"), alias="billAmount")
    bill_date: Optional[date] = Field(default=None, alias="billDate")
    deadline: Optional[date] = None

    @model_validator(mode="before")
    @classmethod
    def unwrap_nested_bill(cls, data: Any) -> Any:
        # Older backends return the association entity with the bill nested inside.
        if isinstance(data, Mapping) and isinstance(data.get("bill"), Mapping):
            nested = data["bill"]
            merged = dict(data)
            merged.pop("bill")
            merged.setdefault("billId", nested.get("billId"))
            merged.setdefault("billDescription", nested.get("description", ""))
            merged.setdefault("billAmount", nested.get("amount", 0))
            merged.setdefault("billDate", nested.get("billDate"))
            merged.setdefault("deadline", nested.get("deadline"))
            return merged
        return data


class BillDraft(BaseModel):
    """A bill as typed into the add/update forms, after client-side checks."""

    description: str
    amount: Decimal
    bill_date: date
    deadline: date

    @classmethod
    def from_form(cls, values: Mapping[str, str]) -> "BillDraft":
        description = (values.get("description") or "").strip()
        if not description:
            raise ValidationFailure("Description is required", field="description")

        raw_amount = (values.get("amount") or "").strip()
        try:
            amount = Decimal(raw_amount)
        except InvalidOperation:
            amount = None
        if amount is None or not amount.is_finite() or amount <= 0:
            raise ValidationFailure("Amount must be greater than 0", field="amount")
        try:
            amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            # More digits than the decimal context can hold.
            raise ValidationFailure("Amount is too large", field="amount") from exc

        bill_date = _parse_date(values.get("billDate"), "Bill date", "billDate")
        deadline = _parse_date(values.get("deadline"), "Deadline", "deadline")
        if bill_date > deadline:
            raise ValidationFailure("Deadline must be after bill date", field="deadline")

        return cls(
            description=description,
            amount=amount,
            bill_date=bill_date,
            deadline=deadline,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "amount": float(self.amount),
            "billDate": self.bill_date.isoformat(),
            "deadline": self.deadline.isoformat(),
        }


def _parse_date(raw: str | None, label: str, field: str) -> date:
    text = (raw or "").strip()
    if not text:
        raise ValidationFailure(f"{label} is required", field=field)
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationFailure(f"{label} is not a valid date", field=field) from exc


def bill_form_values(bill: Bill) -> dict[str, str]:
    """Prefill an edit form from a fetched bill."""

    return {
        "billId": str(bill.bill_id),
        "description": bill.description,
        "amount": format(bill.amount, "f"),
        "billDate": bill.bill_date.isoformat() if bill.bill_date else "",
        "deadline": bill.deadline.isoformat() if bill.deadline else "",
    }


def require_fields(values: Mapping[str, str], *fields: tuple[str, str]) -> None:
    """Raise for the first ``(name, message)`` pair whose value is blank."""

    for name, message in fields:
        if not (values.get(name) or "").strip():
            raise ValidationFailure(message, field=name)

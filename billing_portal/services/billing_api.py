from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from ..core.errors import RequestError
from ..schemas.bill import Bill, BillDraft, StudentBill
from .gateway import BackendGateway

logger = logging.getLogger(__name__)


def _segment(value: Any) -> str:
    return quote(str(value).strip(), safe="")


def _parse(model, payload: Any):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "backend.unexpected_payload",
            extra={"extra_data": {"model": model.__name__, "errors": exc.error_count()}},
        )
        raise RequestError("Invalid response from the billing service") from exc


def _parse_list(model, payload: Any, key: str) -> list:
    if isinstance(payload, dict):
        payload = payload.get(key) or []
    if not isinstance(payload, list):
        return []
    return [_parse(model, item) for item in payload if item]


class BillingApi:
    """Typed wrappers around the backend's bill and student-bill endpoints."""

    def __init__(self, gateway: BackendGateway) -> None:
        self.gateway = gateway

    # ---- Bills

    async def add_bill(self, draft: BillDraft) -> Bill | None:
        payload = await self.gateway.call("/bills/add-bill", "POST", draft.to_payload())
        return _parse(Bill, payload) if payload else None

    async def list_bills(self) -> list[Bill]:
        payload = await self.gateway.call("/bills/show-all-bills")
        return _parse_list(Bill, payload, "bills")

    async def get_bill(self, bill_id: int | str) -> Bill:
        payload = await self.gateway.call(f"/bills/{_segment(bill_id)}")
        if not payload:
            raise RequestError("Bill not found", status_code=404)
        return _parse(Bill, payload)

    async def update_bill(self, bill_id: int | str, draft: BillDraft) -> Bill | None:
        payload = await self.gateway.call(
            f"/bills/update-bill-details/{_segment(bill_id)}", "PATCH", draft.to_payload()
        )
        return _parse(Bill, payload) if payload else None

    async def delete_bill(self, bill_id: int | str) -> Any:
        return await self.gateway.call(f"/bills/delete-billid/{_segment(bill_id)}", "DELETE")

    # ---- Student bills

    async def assign_to_roll(self, roll_number: str, bill_id: int | str) -> Any:
        return await self.gateway.call(
            f"/student-bills/assign-to-roll/{_segment(roll_number)}/{_segment(bill_id)}", "POST"
        )

    async def assign_to_domain(self, domain: str, bill_id: int | str) -> Any:
        return await self.gateway.call(
            f"/student-bills/assign-to-domain/{_segment(domain)}/{_segment(bill_id)}", "POST"
        )

    async def student_bills(self, roll_number: str) -> list[StudentBill]:
        payload = await self.gateway.call(f"/student-bills/all-bills-of-roll/{_segment(roll_number)}")
        return _parse_list(StudentBill, payload, "bills")

    async def delete_student_bills(self, roll_number: str) -> Any:
        return await self.gateway.call(
            f"/student-bills/delete-student-bill/{_segment(roll_number)}", "DELETE"
        )

    async def delete_student_bill(self, roll_number: str, bill_id: int | str) -> Any:
        return await self.gateway.call(
            f"/student-bills/delete-bill-of-roll/{_segment(roll_number)}/bill/{_segment(bill_id)}",
            "DELETE",
        )

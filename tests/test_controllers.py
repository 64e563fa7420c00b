"""Tests for the form state machine shared by every billing page."""

import asyncio
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_SECRET", "test-secret")

from billing_portal.controllers.base import ViewController, ViewState
from billing_portal.controllers.bills import add_bill_controller, delete_bill_controller, update_bill_controller
from billing_portal.controllers.student_bills import (
    assign_to_domain_controller,
    delete_student_bill_controller,
)
from billing_portal.core.errors import AuthenticationRequired, RequestError
from billing_portal.schemas.bill import BillDraft


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class RecordingAction:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    async def __call__(self, prepared):
        self.calls.append(prepared)
        if self.error is not None:
            raise self.error
        return self.result


VALID_BILL = {"description": "Bus pass", "amount": "1500", "billDate": "2024-05-01", "deadline": "2024-05-15"}


def bill_controller(clock, **kwargs):
    return ViewController(
        ("description", "amount", "billDate", "deadline"),
        validate=BillDraft.from_form,
        success_message="Bill added successfully!",
        success_seconds=3,
        clock=clock,
        **kwargs,
    )


def test_validation_failure_never_calls_backend():
    view = add_bill_controller({**VALID_BILL, "amount": "0"})
    action = RecordingAction()

    state = asyncio.run(view.submit(action))

    assert state is ViewState.ERROR
    assert view.error == "Amount must be greater than 0"
    assert action.calls == []


def test_oversized_amount_is_a_validation_error():
    view = add_bill_controller({**VALID_BILL, "amount": "1e30"})
    action = RecordingAction()

    state = asyncio.run(view.submit(action))

    assert state is ViewState.ERROR
    assert view.error == "Amount is too large"
    assert action.calls == []


def test_success_resets_form_and_expires_to_idle():
    clock = FakeClock()
    view = bill_controller(clock, values=VALID_BILL)
    action = RecordingAction(result="created")

    asyncio.run(view.submit(action))

    assert view.state is ViewState.SUCCESS
    assert view.result == "created"
    assert view.values == {"description": "", "amount": "", "billDate": "", "deadline": ""}
    assert isinstance(action.calls[0], BillDraft)

    clock.now += 2
    assert view.tick() is ViewState.SUCCESS
    clock.now += 1
    assert view.tick() is ViewState.IDLE


def test_update_keeps_values_until_window_expires():
    clock = FakeClock()
    view = ViewController(
        ("billId", "description"),
        success_seconds=2,
        reset_on_success=False,
        reset_on_expire=True,
        values={"billId": "4", "description": "Hostel"},
        clock=clock,
    )

    asyncio.run(view.submit(RecordingAction()))
    assert view.values["billId"] == "4"

    assert view.tick(now=clock.now + 2) is ViewState.IDLE
    assert view.values == {"billId": "", "description": ""}


def test_backend_rejection_shows_message_and_edit_clears_it():
    view = bill_controller(FakeClock(), values=VALID_BILL)

    asyncio.run(view.submit(RecordingAction(error=RequestError("Bill already exists", status_code=409))))

    assert view.state is ViewState.ERROR
    assert view.error == "Bill already exists"
    assert view.values["description"] == "Bus pass"

    view.edit("description", "Bus pass (term 2)")
    assert view.state is ViewState.IDLE
    assert view.error == ""


def test_authentication_required_propagates():
    view = bill_controller(FakeClock(), values=VALID_BILL)

    with pytest.raises(AuthenticationRequired):
        asyncio.run(view.submit(RecordingAction(error=AuthenticationRequired())))

    assert view.state is ViewState.IDLE


def test_edit_rejects_unknown_field():
    view = add_bill_controller()
    with pytest.raises(KeyError):
        view.edit("rollNumber", "CS1")


def test_delete_needs_two_activations():
    view = delete_bill_controller({"billId": "8"})
    action = RecordingAction()

    assert asyncio.run(view.activate(action)) is ViewState.AWAITING_CONFIRMATION
    assert action.calls == []

    assert asyncio.run(view.activate(action)) is ViewState.SUCCESS
    assert action.calls == ["8"]
    assert view.success_message == "Bill deleted successfully!"


def test_edit_disarms_confirmation():
    view = delete_student_bill_controller({"rollNumber": "CS1", "billId": "2"})
    action = RecordingAction()

    asyncio.run(view.activate(action))
    view.edit("billId", "3")
    assert view.state is ViewState.IDLE

    asyncio.run(view.activate(action))
    assert view.armed
    assert action.calls == []


def test_activation_with_missing_fields_does_not_arm():
    view = delete_student_bill_controller({"rollNumber": "CS1"})

    asyncio.run(view.activate(RecordingAction()))

    assert view.state is ViewState.ERROR
    assert view.error == "Both roll number and bill ID are required"


def test_confirmation_snapshot_round_trip():
    armed = delete_bill_controller({"billId": "8"})
    asyncio.run(armed.activate(RecordingAction()))
    token = armed.snapshot()

    same = delete_bill_controller({"billId": "8"})
    assert same.restore_confirmation(token)
    assert same.armed

    changed = delete_bill_controller({"billId": "9"})
    assert not changed.restore_confirmation(token)
    assert not changed.restore_confirmation("")
    assert changed.state is ViewState.IDLE


def test_update_validates_bill_id_first():
    view = update_bill_controller({**VALID_BILL, "billId": " "})
    asyncio.run(view.submit(RecordingAction()))
    assert view.error == "Bill ID is required"


def test_domain_assignment_requires_domain():
    view = assign_to_domain_controller({"billId": "3"})
    asyncio.run(view.submit(RecordingAction()))
    assert view.error == "Domain is required"

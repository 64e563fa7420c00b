"""End-to-end tests for the portal pages with the backend mocked out."""

import json
import os
import re
import sys
from pathlib import Path

import pytest
import respx
from fastapi.testclient import TestClient
from httpx import Response

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("APP_SECRET", "test-secret")

from billing_portal import create_app
from billing_portal.core.config import settings

BASE = settings.BACKEND_BASE_URL
FINANCE_EMAIL = "finance.office@college.edu"
BILL_5 = {"billId": 5, "description": "Hostel rent", "amount": 1200, "billDate": "2024-01-10", "deadline": "2024-02-10"}


@pytest.fixture()
def backend():
    with respx.mock(base_url=BASE, assert_all_called=False) as mock:
        yield mock


@pytest.fixture()
def client(backend):
    with TestClient(create_app()) as test_client:
        yield test_client


def sign_in(client, backend, email=FINANCE_EMAIL):
    backend.get("/auth/user", name="auth_user").mock(
        return_value=Response(200, json={"name": "Priya Sharma", "email": email})
    )
    return client.get("/oauth-callback", params={"token": "tok-1"}, follow_redirects=False)


def confirm_token(html):
    match = re.search(r'name="confirm" value="([0-9a-f]{64})"', html)
    assert match, "confirmation token missing from page"
    return match.group(1)


def test_root_and_anonymous_pages(client):
    root = client.get("/", follow_redirects=False)
    assert root.status_code == 302
    assert root.headers["location"] == "/login"

    login = client.get("/login")
    assert login.status_code == 200
    assert "Sign in with Google" in login.text
    assert login.headers["x-frame-options"] == "DENY"
    assert "x-request-id" in login.headers

    google = client.get("/login/google", follow_redirects=False)
    assert google.headers["location"] == settings.oauth_login_url


def test_protected_pages_redirect_anonymous_users(client):
    for path in ("/employee", "/employee/bills/all", "/employee/student-bills/view", "/invalid-access"):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 302, path
        assert response.headers["location"] == "/login"


def test_finance_user_lands_on_dashboard(client, backend):
    callback = sign_in(client, backend)

    assert callback.status_code == 302
    assert callback.headers["location"] == "/employee"
    user_route = backend.routes["auth_user"]
    assert user_route.calls.last.request.headers["authorization"] == "Bearer tok-1"

    dashboard = client.get("/employee")
    assert dashboard.status_code == 200
    assert "Priya Sharma" in dashboard.text
    assert "Assign to Domain" in dashboard.text
    assert dashboard.headers["cache-control"] == "no-store"
    # The signed-in user is cached in the session, so no second lookup.
    assert user_route.call_count == 1

    again = client.get("/login", follow_redirects=False)
    assert again.headers["location"] == "/employee"


def test_non_finance_user_is_restricted(client, backend):
    callback = sign_in(client, backend, email="registrar@college.edu")
    assert callback.headers["location"] == "/invalid-access"

    landing = client.get("/invalid-access")
    assert landing.status_code == 200
    assert "registrar@college.edu" in landing.text

    denied = client.get("/employee/bills/add")
    assert denied.status_code == 403
    assert "Access Denied" in denied.text


def test_failed_oauth_callback_returns_to_login(client, backend):
    backend.get("/auth/user").mock(return_value=Response(401))

    callback = client.get("/oauth-callback", params={"token": "bad"}, follow_redirects=False)

    assert callback.headers["location"] == "/login"
    assert client.get("/employee", follow_redirects=False).headers["location"] == "/login"


def test_logout_forgets_the_session(client, backend):
    sign_in(client, backend)

    response = client.post("/logout", follow_redirects=False)

    assert response.headers["location"] == "/login"
    assert client.get("/employee", follow_redirects=False).headers["location"] == "/login"


def test_add_bill_validates_before_calling_backend(client, backend):
    sign_in(client, backend)
    add = backend.post("/bills/add-bill").mock(return_value=Response(200, json={"billId": 9}))

    bad = client.post(
        "/employee/bills/add",
        data={"description": "Bus pass", "amount": "0", "billDate": "2024-05-01", "deadline": "2024-05-15"},
    )
    assert bad.status_code == 400
    assert "Amount must be greater than 0" in bad.text
    assert "Bus pass" in bad.text
    assert not add.called

    huge = client.post(
        "/employee/bills/add",
        data={"description": "Bus pass", "amount": "1e30", "billDate": "2024-05-01", "deadline": "2024-05-15"},
    )
    assert huge.status_code == 400
    assert "Amount is too large" in huge.text
    assert not add.called

    good = client.post(
        "/employee/bills/add",
        data={"description": "Bus pass", "amount": "1500.5", "billDate": "2024-05-01", "deadline": "2024-05-15"},
    )
    assert good.status_code == 200
    assert "Bill added successfully!" in good.text
    assert 'http-equiv="refresh"' in good.text
    assert json.loads(add.calls.last.request.content) == {
        "description": "Bus pass",
        "amount": 1500.5,
        "billDate": "2024-05-01",
        "deadline": "2024-05-15",
    }


def test_backend_rejection_is_shown_inline(client, backend):
    sign_in(client, backend)
    backend.post("/student-bills/assign-to-roll/CS21B001/4").mock(
        return_value=Response(404, json={"message": "Student not found"})
    )

    response = client.post("/employee/student-bills/assign-roll", data={"rollNumber": "CS21B001", "billId": "4"})

    assert response.status_code == 400
    assert "Student not found" in response.text


def test_expired_token_sends_browser_back_to_login(client, backend):
    sign_in(client, backend)
    backend.get("/bills/show-all-bills").mock(return_value=Response(401))

    response = client.get("/employee/bills/all", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert client.get("/employee", follow_redirects=False).headers["location"] == "/login"


def test_expired_token_on_form_post_redirects_too(client, backend):
    sign_in(client, backend)
    backend.post("/student-bills/assign-to-roll/CS1/4").mock(return_value=Response(401))

    response = client.post(
        "/employee/student-bills/assign-roll",
        data={"rollNumber": "CS1", "billId": "4"},
        headers={"accept": "application/json"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_bill_list_and_details(client, backend):
    sign_in(client, backend)
    backend.get("/bills/show-all-bills").mock(return_value=Response(200, json=[BILL_5]))
    backend.get("/bills/5").mock(return_value=Response(200, json=BILL_5))

    listing = client.get("/employee/bills/all")
    assert "Hostel rent" in listing.text
    assert "₹1,200.00" in listing.text
    assert "10/01/2024" in listing.text

    details = client.get("/employee/bills/5")
    assert details.status_code == 200
    assert "Saturday, 10 February 2024" in details.text


def test_update_bill_prefills_and_patches(client, backend):
    sign_in(client, backend)
    backend.get("/bills/5").mock(return_value=Response(200, json=BILL_5))
    patch = backend.patch("/bills/update-bill-details/5").mock(return_value=Response(200, json=BILL_5))

    form = client.get("/employee/bills/update", params={"billId": "5"})
    assert 'value="2024-02-10"' in form.text

    saved = client.post(
        "/employee/bills/update",
        data={"billId": "5", "description": "Hostel rent", "amount": "1300", "billDate": "2024-01-10", "deadline": "2024-02-10"},
    )
    assert "Bill updated successfully!" in saved.text
    assert json.loads(patch.calls.last.request.content)["amount"] == 1300.0


def test_delete_bill_requires_confirmation(client, backend):
    sign_in(client, backend)
    backend.get("/bills/5").mock(return_value=Response(200, json=BILL_5))
    delete = backend.delete("/bills/delete-billid/5").mock(return_value=Response(200))

    preview = client.get("/employee/bills/delete", params={"billId": "5"})
    assert "Hostel rent" in preview.text
    assert "Confirm Delete" not in preview.text

    armed = client.post("/employee/bills/delete", data={"billId": "5"})
    assert "Confirm Delete" in armed.text
    assert not delete.called

    done = client.post("/employee/bills/delete", data={"billId": "5", "confirm": confirm_token(armed.text)})
    assert "Bill deleted successfully!" in done.text
    assert delete.call_count == 1


def test_stale_confirmation_arms_again(client, backend):
    sign_in(client, backend)
    wipe = backend.delete("/student-bills/delete-student-bill/CS2").mock(return_value=Response(200))

    armed = client.post("/employee/student-bills/delete-student", data={"rollNumber": "CS1"})
    token = confirm_token(armed.text)

    rearmed = client.post("/employee/student-bills/delete-student", data={"rollNumber": "CS2", "confirm": token})
    assert "Confirm Delete" in rearmed.text
    assert not wipe.called


def test_student_bills_total_and_empty_state(client, backend):
    sign_in(client, backend)
    backend.get("/student-bills/all-bills-of-roll/CS21B001").mock(
        return_value=Response(
            200,
            json=[
                {"billId": 1, "billDescription": "Tuition", "billAmount": 1000, "billDate": "2024-07-01", "deadline": "2024-07-31"},
                {"billId": 2, "billDescription": "Library", "billAmount": 500.5, "billDate": "2024-07-01", "deadline": "2024-07-31"},
            ],
        )
    )
    backend.get("/student-bills/all-bills-of-roll/CS21B002").mock(return_value=Response(200, json=[]))

    found = client.get("/employee/student-bills/view", params={"rollNumber": "CS21B001", "searched": "true"})
    assert "₹1,500.50" in found.text

    empty = client.get("/employee/student-bills/view", params={"rollNumber": "CS21B002", "searched": "true"})
    assert "No bills found for this student." in empty.text

    blank = client.get("/employee/student-bills/view", params={"rollNumber": "", "searched": "true"})
    assert blank.status_code == 400
    assert "Roll number is required" in blank.text


def test_assign_to_domain_lists_configured_domains(client, backend):
    sign_in(client, backend)
    route = backend.post(path__regex=r"^/student-bills/assign-to-domain/").mock(return_value=Response(200))

    page = client.get("/employee/student-bills/assign-domain")
    for domain in settings.DOMAINS:
        assert domain in page.text

    done = client.post(
        "/employee/student-bills/assign-domain", data={"domain": "Computer Science", "billId": "7"}
    )
    assert "Bill assigned to all students in the domain successfully!" in done.text
    assert route.calls.last.request.url.raw_path == b"/student-bills/assign-to-domain/Computer%20Science/7"


def test_health_and_metrics_endpoints():
    from billing_portal.main import app

    assert app.title == settings.APP_NAME
    with TestClient(app) as test_client:
        assert test_client.get("/health").json() == {"ok": True}
        assert test_client.get("/metrics").status_code == 200


def test_unknown_paths(client):
    page = client.get("/no-such-page", headers={"accept": "text/html"}, follow_redirects=False)
    assert page.status_code == 302
    assert page.headers["location"] == "/login"

    api = client.get("/no-such-page")
    assert api.status_code == 404
    assert api.json() == {"code": "http_error", "message": "Not Found"}

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.dependencies.services import get_notifier
from backend.app.main import app
from backend.app.services.notifications import NotificationResult


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


class FakeNotifier:
    def __init__(self, success: bool = True):
        self.success = success
        self.sent = []

    def _send(self, kind, to, data):
        self.sent.append((kind, to, data))
        return NotificationResult(success=self.success, message_id="msg_1" if self.success else None)

    def send_invoice(self, to, data):
        return self._send("invoice", to, data)

    def send_reminder(self, to, data):
        return self._send("reminder", to, data)

    def send_recurring_invoice(self, to, data):
        return self._send("recurring", to, data)


def register_and_login(client: TestClient, email: str, password: str = "secret") -> str:
    client.post(
        "/auth/register",
        json={"email": email, "password": password, "first_name": "Test", "last_name": "User"},
    )
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def recurring_payload(**overrides) -> dict:
    payload = {
        "client_name": "Jane Client",
        "client_email": "jane@client.example.com",
        "invoice_number_prefix": "ACME-",
        "frequency": "monthly",
        "start_date": "2024-01-31",
        "lineItems": [
            {"description": "Design", "quantity": 2, "rate": 10},
            {"description": "Hosting", "quantity": 1, "rate": 5},
        ],
    }
    payload.update(overrides)
    return payload


def create_recurring(client: TestClient, token: str, **overrides) -> dict:
    response = client.post(
        "/recurring-invoices",
        json=recurring_payload(**overrides),
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 201
    return response.json()


def test_create_recurring_invoice_defaults_next_date_to_start():
    client = TestClient(app)
    token = register_and_login(client, "rec1@example.com")
    data = create_recurring(client, token)

    assert data["status"] == "active"
    assert data["next_date"] == "2024-01-31"
    assert Decimal(data["total"]) == Decimal("25.00")
    assert len(data["lineItems"]) == 2


def test_unknown_frequency_is_rejected():
    client = TestClient(app)
    token = register_and_login(client, "rec2@example.com")
    response = client.post(
        "/recurring-invoices",
        json=recurring_payload(frequency="daily"),
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 400
    assert response.json()["error"].startswith("frequency:")


def test_end_date_before_start_is_rejected():
    client = TestClient(app)
    token = register_and_login(client, "rec3@example.com")
    headers = {"Authorization": f"Bearer {token}"}
    response = client.post("/recurring-invoices", json=recurring_payload(end_date="2023-12-31"), headers=headers)
    assert response.status_code == 400

    created = create_recurring(client, token)
    response = client.put(f"/recurring-invoices/{created['id']}", json={"end_date": "2023-01-01"}, headers=headers)
    assert response.status_code == 400
    assert response.json() == {"error": "end_date must not be before start_date"}


def test_update_pauses_and_replaces_items():
    client = TestClient(app)
    token = register_and_login(client, "rec4@example.com")
    created = create_recurring(client, token)
    response = client.put(
        f"/recurring-invoices/{created['id']}",
        json={"status": "paused", "lineItems": [{"description": "Retainer", "quantity": 1, "rate": 500}]},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "paused"
    assert Decimal(data["total"]) == Decimal("500.00")
    assert [item["description"] for item in data["lineItems"]] == ["Retainer"]


def test_recurring_invoices_are_owner_scoped():
    client = TestClient(app)
    token_a = register_and_login(client, "a@example.com")
    token_b = register_and_login(client, "b@example.com")
    created = create_recurring(client, token_a)
    headers_b = {"Authorization": f"Bearer {token_b}"}

    assert client.get("/recurring-invoices", headers=headers_b).json() == []
    assert client.get(f"/recurring-invoices/{created['id']}", headers=headers_b).status_code == 404
    assert client.post(f"/recurring-invoices/{created['id']}/generate-invoice", headers=headers_b).status_code == 404


def test_generate_invoice_does_not_advance_schedule():
    client = TestClient(app)
    token = register_and_login(client, "gen@example.com")
    headers = {"Authorization": f"Bearer {token}"}
    created = create_recurring(client, token)

    response = client.post(f"/recurring-invoices/{created['id']}/generate-invoice", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["invoiceNumber"].startswith("ACME-")
    assert "emailSent" not in data

    invoice = client.get(f"/invoices/{data['invoiceId']}", headers=headers).json()
    assert invoice["status"] == "draft"
    assert invoice["recurring_invoice_id"] == created["id"]
    assert Decimal(invoice["total"]) == Decimal("25.00")

    template = client.get(f"/recurring-invoices/{created['id']}", headers=headers).json()
    assert template["next_date"] == "2024-01-31"


def test_duplicate_custom_invoice_numbers_are_allowed():
    client = TestClient(app)
    token = register_and_login(client, "dup@example.com")
    headers = {"Authorization": f"Bearer {token}"}
    created = create_recurring(client, token)
    url = f"/recurring-invoices/{created['id']}/generate-invoice"

    first = client.post(url, json={"customInvoiceNumber": "ACME-001"}, headers=headers).json()
    second = client.post(url, json={"customInvoiceNumber": "ACME-001"}, headers=headers).json()

    assert first["invoiceNumber"] == second["invoiceNumber"] == "ACME-001"
    assert first["invoiceId"] != second["invoiceId"]

    generated = client.get(f"/recurring-invoices/{created['id']}/invoices", headers=headers).json()
    assert sorted(inv["id"] for inv in generated) == sorted([first["invoiceId"], second["invoiceId"]])


def test_generate_invoice_with_email_reports_delivery():
    notifier = FakeNotifier(success=False)
    app.dependency_overrides[get_notifier] = lambda: notifier
    client = TestClient(app)
    token = register_and_login(client, "genmail@example.com")
    created = create_recurring(client, token)

    response = client.post(
        f"/recurring-invoices/{created['id']}/generate-invoice",
        json={"sendEmail": True},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    assert response.json()["emailSent"] is False
    assert notifier.sent[0][0] == "invoice"


def test_send_preview_in_test_mode():
    notifier = FakeNotifier()
    app.dependency_overrides[get_notifier] = lambda: notifier
    client = TestClient(app)
    token = register_and_login(client, "preview@example.com")
    created = create_recurring(client, token)

    response = client.post(
        f"/recurring-invoices/{created['id']}/send",
        json={"testMode": {"email": "me@owner.example.com"}},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    assert response.json()["sentTo"] == "me@owner.example.com"
    kind, to, email = notifier.sent[0]
    assert (kind, to) == ("recurring", "me@owner.example.com")
    assert email.invoice_number == "ACME-012024"


def test_deleting_template_keeps_generated_invoices():
    client = TestClient(app)
    token = register_and_login(client, "del@example.com")
    headers = {"Authorization": f"Bearer {token}"}
    created = create_recurring(client, token)
    generated = client.post(f"/recurring-invoices/{created['id']}/generate-invoice", headers=headers).json()

    response = client.delete(f"/recurring-invoices/{created['id']}", headers=headers)
    assert response.status_code == 200
    assert client.get(f"/recurring-invoices/{created['id']}", headers=headers).status_code == 404

    invoice = client.get(f"/invoices/{generated['invoiceId']}", headers=headers)
    assert invoice.status_code == 200
    assert invoice.json()["recurring_invoice_id"] is None

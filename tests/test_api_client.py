import httpx
import pytest
from fastapi.testclient import TestClient

from backend.app.clients.api import ApiError, InvoicerApiClient
from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def api():
    api = InvoicerApiClient(http_client=TestClient(app))
    api.post(
        "/auth/register",
        {"email": "api@example.com", "password": "secret", "first_name": "Api", "last_name": "User"},
    )
    return api


def test_login_stores_token_and_authenticates_requests(api):
    assert api.token is None
    data = api.login("api@example.com", "secret")
    assert api.token == data["access_token"]
    assert api.get("/auth/me")["email"] == "api@example.com"


def test_requests_without_token_raise_api_error(api):
    with pytest.raises(ApiError) as excinfo:
        api.get("/auth/me")
    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Unauthorized"


def test_clear_token_signs_out(api):
    api.login("api@example.com", "secret")
    api.clear_token()
    with pytest.raises(ApiError):
        api.get("/clients")


def test_crud_round_through_client(api):
    api.login("api@example.com", "secret")
    created = api.post("/clients", {"name": "Jane Client", "email": "jane@client.example.com"})
    updated = api.put(f"/clients/{created['id']}", {"phone": "555-0100"})
    assert updated["phone"] == "555-0100"
    assert [c["id"] for c in api.get("/clients")] == [created["id"]]
    assert api.delete(f"/clients/{created['id']}") == {"success": True}

    with pytest.raises(ApiError) as excinfo:
        api.get(f"/clients/{created['id']}")
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Client not found"


def test_bad_login_raises_api_error(api):
    with pytest.raises(ApiError) as excinfo:
        api.login("api@example.com", "wrong")
    assert excinfo.value.status_code == 401
    assert api.token is None


def test_set_token_sends_bearer_header():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json={"ok": True})

    api = InvoicerApiClient(http_client=httpx.Client(base_url="https://api.test", transport=httpx.MockTransport(handler)))
    api.set_token("abc")
    assert api.get("/anything") == {"ok": True}
    assert seen == ["Bearer abc"]


def test_base_url_or_client_required():
    with pytest.raises(ValueError):
        InvoicerApiClient()

"""Tests for settings validation, startup and the Square client."""

import logging

import pytest
import requests
from fastapi.testclient import TestClient

from storefront_gateway.main import create_app
from storefront_gateway.search.gateway import SearchGateway
from storefront_gateway.shared.config import Settings
from storefront_gateway.shared.errors import ConfigurationError, SquareAPIError
from storefront_gateway.shared.square_client import SquareClient

REQUIRED_ENV = ("SQUARE_ACCESS_TOKEN", "SQUARE_LOCATION_ID", "PINECONE_API_KEY")


@pytest.fixture
def clean_env(monkeypatch):
    for name in REQUIRED_ENV + ("SQUARE_ENVIRONMENT", "ADMIN_PASSWORD", "REDIS_HOST"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_read_from_environment(clean_env):
    clean_env.setenv("SQUARE_ACCESS_TOKEN", "tok")
    clean_env.setenv("SQUARE_LOCATION_ID", "LOC-9")
    clean_env.setenv("PINECONE_API_KEY", "pk")
    clean_env.setenv("SQUARE_ENVIRONMENT", "sandbox")

    settings = Settings(_env_file=None)

    assert settings.missing_required() == []
    assert settings.square_location_id == "LOC-9"
    assert settings.square_base_url == "https://connect.squareupsandbox.com"
    assert settings.admin_password == "admin123"


def test_missing_credentials_are_named(clean_env):
    clean_env.setenv("SQUARE_LOCATION_ID", "LOC-9")

    settings = Settings(_env_file=None)

    with pytest.raises(ConfigurationError) as exc:
        settings.require_complete()
    assert "SQUARE_ACCESS_TOKEN" in str(exc.value)
    assert "PINECONE_API_KEY" in str(exc.value)
    assert "SQUARE_LOCATION_ID" not in str(exc.value)


def test_startup_fails_fast_without_credentials(clean_env):
    app = create_app(settings=Settings(_env_file=None))

    with pytest.raises(ConfigurationError):
        with TestClient(app):
            pass


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "storefront-gateway", "version": "1.0.0"}


def test_malformed_json_is_a_client_error(client):
    response = client.post(
        "/api/square/inventory/batch",
        content=b"{oops",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_square_client_requires_token():
    with pytest.raises(ConfigurationError):
        SquareClient(access_token="", base_url="https://connect.squareup.com")


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._payload


class FakeSession(requests.Session):
    def __init__(self, response):
        super().__init__()
        self.response = response
        self.sent = []

    def request(self, method, url, **kwargs):
        self.sent.append((method, url, kwargs))
        return self.response


def test_square_client_sends_auth_headers_and_body():
    session = FakeSession(FakeResponse(200, {"counts": []}))
    client = SquareClient("tok", "https://connect.squareup.com/", api_version="2024-12-18", session=session)

    client.batch_retrieve_inventory_counts(["v1"], location_ids=["LOC-1"])

    (method, url, kwargs) = session.sent[0]
    assert method == "POST"
    assert url == "https://connect.squareup.com/v2/inventory/batch-retrieve-counts"
    assert kwargs["json"] == {"catalog_object_ids": ["v1"], "location_ids": ["LOC-1"]}
    assert session.headers["Authorization"] == "Bearer tok"
    assert session.headers["Square-Version"] == "2024-12-18"


def test_square_client_raises_with_vendor_errors():
    errors = [{"code": "UNAUTHORIZED"}]
    client = SquareClient("tok", "https://connect.squareup.com", session=FakeSession(FakeResponse(401, {"errors": errors})))

    with pytest.raises(SquareAPIError) as exc:
        client.retrieve_order("ORDER-1")
    assert exc.value.status_code == 401
    assert exc.value.errors == errors


def test_default_admin_password_warns_even_with_injected_clients(settings, square, index, caplog):
    settings.admin_password = "admin123"
    search = SearchGateway(index, index_name="books-index")
    app = create_app(settings=settings, square=square, search=search)

    with caplog.at_level(logging.WARNING, logger="storefront_gateway.main"):
        with TestClient(app):
            pass

    assert "insecure development default" in caplog.text


def test_custom_admin_password_does_not_warn(app, caplog):
    with caplog.at_level(logging.WARNING, logger="storefront_gateway.main"):
        with TestClient(app):
            pass

    assert "insecure development default" not in caplog.text

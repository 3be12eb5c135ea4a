import json
import sys
from pathlib import Path
from urllib.parse import urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app import app
from config import settings
from edht.services.api_client import get_backend_transport
from edht.services.session import get_session_store

API_PREFIX = urlsplit(settings.api_base_url).path.rstrip("/")

DEFAULT_USER = {
    "id": "user-1",
    "name": "Alice Liddell",
    "nickname": "alice",
    "email": "alice@example.com",
    "isAdmin": False,
}


class FakeBackend:
    """Records backend calls and answers them from canned responses."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, json_body=None, status_code=200):
        self.routes[(method.upper(), API_PREFIX + path)] = (status_code, json_body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "error": "Resource not found"})
        status_code, body = route
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)

    def calls(self, method, path):
        return [
            request
            for request in self.requests
            if request.method == method.upper() and request.url.path == API_PREFIX + path
        ]

    def json_sent(self, method, path, index=-1):
        return json.loads(self.calls(method, path)[index].content)


@pytest.fixture(scope="session")
def client():
    """Shared TestClient for FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_state(client):
    yield
    client.cookies.clear()
    get_session_store().clear()
    app.dependency_overrides.clear()


@pytest.fixture
def backend():
    fake = FakeBackend()
    transport = httpx.MockTransport(fake.handler)
    app.dependency_overrides[get_backend_transport] = lambda: transport
    return fake


@pytest.fixture
def login(client, backend):
    """Log in through the real form with the given user fields."""

    def _login(token="test-token", **user_fields):
        user = {**DEFAULT_USER, **user_fields}
        backend.add("POST", "/auth/login", {"success": True, "token": token, "user": user})
        response = client.post(
            "/login",
            data={"email": user["email"], "password": "secret1"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        return user

    return _login

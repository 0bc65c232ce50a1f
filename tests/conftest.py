"""Pytest fixtures for shopdesk tests."""

import json
import tempfile
import threading
import uuid
from pathlib import Path
from typing import Any

import httpx
import pytest

from shopdesk.config import Settings
from shopdesk.dashboard import Dashboard


class FakeResourceStore:
    """
    In-process stand-in for the JSON REST resource store.

    Serves ``/<collection>`` and ``/<collection>/<id>`` with list, exact-match
    query filters, get, create, full replace and delete. Every request is
    recorded in ``calls``; ``fail()`` makes a route answer with an error.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {"users": {}, "cards": {}}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def add(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        self.collections[collection][str(record["id"])] = dict(record)
        return record

    def record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        return self.collections[collection].get(record_id)

    def fail(self, method: str, path: str, status: int = 500) -> None:
        self.failures[(method, path)] = status

    def count(self, method: str, path: str | None = None) -> int:
        return len(
            [c for c in self.calls if c[0] == method and (path is None or c[1] == path)]
        )

    def handle(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        with self._lock:
            self.calls.append((method, path))
            if (method, path) in self.failures:
                return httpx.Response(self.failures[(method, path)], json={"error": "boom"})

            parts = path.strip("/").split("/")
            store = self.collections.get(parts[0])
            if store is None:
                return httpx.Response(404, json={})

            if len(parts) == 1:
                if method == "GET":
                    params = dict(request.url.params)
                    items = [
                        r
                        for r in store.values()
                        if all(str(r.get(k)) == v for k, v in params.items())
                    ]
                    return httpx.Response(200, json=items)
                if method == "POST":
                    body = json.loads(request.content)
                    body.setdefault("id", uuid.uuid4().hex[:8])
                    store[str(body["id"])] = body
                    return httpx.Response(201, json=body)
                return httpx.Response(405, json={})

            record_id = parts[1]
            if record_id not in store:
                return httpx.Response(404, json={})
            if method == "GET":
                return httpx.Response(200, json=store[record_id])
            if method == "PUT":
                body = json.loads(request.content)
                body["id"] = record_id
                store[record_id] = body
                return httpx.Response(200, json=body)
            if method == "DELETE":
                store.pop(record_id)
                return httpx.Response(200, json={})
            return httpx.Response(405, json={})


def product_record(
    id: str = "p1",
    title: str = "Widget",
    price: float = 10,
    quantity: int = 5,
    zip: str = "411001",
    **extra: Any,
) -> dict[str, Any]:
    record = {
        "id": id,
        "title": title,
        "price": price,
        "quantity": quantity,
        "image": "https://img.example/widget.png",
        "images": ["https://img.example/widget.png"],
        "city": "Pune",
        "state": "MH",
        "zip": zip,
        "country": "India",
        "postalCode": "",
        "stock": 0,
    }
    record.update(extra)
    return record


def user_record(
    id: str = "u1",
    email: str = "asha@example.com",
    password: str = "secret",
    is_active: bool = True,
    purchases: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    record = {
        "id": id,
        "fullName": "Asha Rao",
        "email": email,
        "password": password,
        "phoneNumber": "9999999999",
        "gender": "female",
        "isActive": is_active,
        "address1": "1 Main St",
        "address2": "",
        "city": "Pune",
        "state": "MH",
        "zip": "411001",
        "country": "India",
        "address": "1 Main St, Pune, MH, 411001, India",
        "purchasedProducts": purchases or [],
    }
    record.update(extra)
    return record


def purchase_line(product_id: str = "p1", quantity: int = 1, price: float = 10, name: str = "Widget"):
    return {"productId": product_id, "productName": name, "quantity": quantity, "price": price}


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def backend():
    """An empty fake resource store."""
    return FakeResourceStore()


@pytest.fixture
def settings(temp_dir):
    return Settings(api_url="http://testserver", data_dir=temp_dir)


@pytest.fixture
def dashboard(backend, settings):
    """A Dashboard talking to the fake resource store."""
    with Dashboard.create(settings, transport=backend.transport) as dash:
        yield dash

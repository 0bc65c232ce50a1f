"""Tests for ResourceClient."""

import httpx
import pytest

from shopdesk.errors import NotFoundError, RequestFailedError
from shopdesk.resource_client import ResourceClient

from .conftest import product_record, user_record


@pytest.fixture
def http(backend):
    with httpx.Client(base_url="http://testserver", transport=backend.transport) as client:
        yield client


class TestResourceClient:
    def test_list(self, backend, http):
        backend.add("cards", product_record("p1"))
        backend.add("cards", product_record("p2"))

        records = ResourceClient(http, "cards").list()

        assert [r["id"] for r in records] == ["p1", "p2"]

    def test_get_by_field_exact_match(self, backend, http):
        backend.add("users", user_record("u1", email="a@example.com"))
        backend.add("users", user_record("u2", email="b@example.com"))

        found = ResourceClient(http, "users").get_by_field("email", "b@example.com")

        assert [r["id"] for r in found] == ["u2"]

    def test_get(self, backend, http):
        backend.add("cards", product_record("p1", title="Lamp"))
        assert ResourceClient(http, "cards").get("p1")["title"] == "Lamp"

    def test_get_missing_raises_not_found(self, http):
        with pytest.raises(NotFoundError) as exc_info:
            ResourceClient(http, "cards", kind="Product").get("nope")
        assert str(exc_info.value) == "Product not found: nope"

    def test_create_returns_saved_record(self, backend, http):
        saved = ResourceClient(http, "cards").create(product_record("p9"))
        assert saved["id"] == "p9"
        assert backend.record("cards", "p9") is not None

    def test_replace_overwrites_whole_record(self, backend, http):
        backend.add("cards", product_record("p1", description="old"))

        ResourceClient(http, "cards").replace("p1", {"id": "p1", "title": "New", "quantity": 1})

        assert backend.record("cards", "p1") == {"id": "p1", "title": "New", "quantity": 1}

    def test_remove(self, backend, http):
        backend.add("cards", product_record("p1"))
        assert ResourceClient(http, "cards").remove("p1") == "p1"
        assert backend.record("cards", "p1") is None

    def test_non_success_raises_request_failed(self, backend, http):
        backend.fail("GET", "/users", status=503)

        with pytest.raises(RequestFailedError) as exc_info:
            ResourceClient(http, "users").list()

        assert exc_info.value.status_code == 503
        assert exc_info.value.method == "GET"

    def test_put_to_missing_record_is_request_failed(self, http):
        with pytest.raises(RequestFailedError):
            ResourceClient(http, "cards").replace("nope", {"id": "nope"})

    def test_transport_error_is_wrapped(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(RequestFailedError) as exc_info:
                ResourceClient(client, "cards").list()

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

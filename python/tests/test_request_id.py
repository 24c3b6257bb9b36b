"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid
- Request ID presence on auth failures
- Request ID in error response body
"""

from uuid import UUID

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from switchboard.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    get_request_id_from_request,
    resolve_request_id,
)


class TestResolveRequestId:
    """Unit tests for header validation and normalization."""

    def test_missing_generates_uuid4(self):
        assert UUID(resolve_request_id(None)).version == 4

    def test_uuid_is_lowercased(self):
        value = "6F9619FF-8B86-D011-B42D-00C04FC964FF"
        assert resolve_request_id(value) == value.lower()

    def test_simple_token_preserved(self):
        assert resolve_request_id("trace.abc-123_x") == "trace.abc-123_x"

    @pytest.mark.parametrize("value", ["has space", "semi;colon", "a" * 129, ""])
    def test_invalid_replaced(self, value):
        result = resolve_request_id(value)
        assert result != value
        assert UUID(result)


class TestRequestIdMiddleware:
    """Tests for X-Request-ID middleware on the full app."""

    def test_request_id_generated_when_missing(self, client: TestClient):
        """Request ID is generated when not provided."""
        response = client.get("/health")
        assert UUID(response.headers[REQUEST_ID_HEADER])

    def test_valid_request_id_echoed(self, client: TestClient):
        """A valid incoming request ID is echoed back."""
        response = client.get("/health", headers={REQUEST_ID_HEADER: "client-req-42"})
        assert response.headers[REQUEST_ID_HEADER] == "client-req-42"

    def test_request_id_on_auth_failure(self, client: TestClient):
        """401 responses still carry the header, and the body repeats it."""
        response = client.get("/user", headers={REQUEST_ID_HEADER: "auth-fail-1"})

        assert response.status_code == 401
        assert response.headers[REQUEST_ID_HEADER] == "auth-fail-1"
        assert response.json()["error"]["request_id"] == "auth-fail-1"

    def test_request_id_in_service_error_body(self, client: TestClient, make_user):
        """Errors raised by services carry the request id in the envelope."""
        alice = make_user("Alice")
        response = client.get(
            "/groups/00000000-0000-4000-8000-000000000000",
            headers={**alice.headers, REQUEST_ID_HEADER: "svc-err-1"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == "svc-err-1"

    def test_request_id_available_on_request_state(self):
        """Route code can read the id from request.state."""
        app = FastAPI()

        @app.get("/echo")
        def echo(request: Request) -> dict:
            return {"request_id": get_request_id_from_request(request)}

        app.add_middleware(RequestIDMiddleware, log_requests=False)

        response = TestClient(app).get("/echo", headers={REQUEST_ID_HEADER: "state-1"})
        assert response.json() == {"request_id": "state-1"}

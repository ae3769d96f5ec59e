"""Tests for API middleware."""

from fastapi.testclient import TestClient


class TestRequestIdMiddleware:
    """Tests for request ID correlation middleware."""

    def test_generates_request_id_if_not_provided(self, client: TestClient) -> None:
        """Should generate request ID if not in request headers."""
        response = client.get("/health")
        assert response.status_code == 200
        assert "X-Request-ID" in response.headers
        # UUID format
        assert len(response.headers["X-Request-ID"]) == 36

    def test_uses_provided_request_id(self, client: TestClient) -> None:
        """Should use request ID from request headers."""
        custom_id = "custom-request-id-12345"
        response = client.post(
            "/query",
            json={"operations": [{"name": "brands", "fields": ["name"]}]},
            headers={"X-Request-ID": custom_id},
        )
        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == custom_id


class TestErrorResponses:
    """Tests for transport level error bodies."""

    def test_malformed_body(self, client: TestClient) -> None:
        """Envelope validation errors carry the request id."""
        response = client.post(
            "/query",
            json={"operation": []},
            headers={"X-Request-ID": "bad-envelope"},
        )
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "CONSTRAINT_VIOLATION"
        assert body["classification"] == "VALIDATION_ERROR"
        assert body["requestId"] == "bad-envelope"
        assert body["details"]["violations"]

    def test_unknown_route(self, client: TestClient) -> None:
        response = client.get("/graphql")
        assert response.status_code == 404
        assert response.json()["code"] == "HTTP_ERROR"

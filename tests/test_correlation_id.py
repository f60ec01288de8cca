"""Tests for correlation ID handling."""

from parish.utils import get_current_correlation_id


class TestCorrelationId:
    """Test correlation ID utility functions."""

    def test_get_current_correlation_id_without_request_context(self):
        """Test getting correlation ID outside request context."""
        assert get_current_correlation_id() is None

    def test_request_generates_correlation_id(self, client):
        """Test that requests get a generated correlation ID."""
        response = client.get("/health/healthz")

        assert response.status_code == 200
        assert response.headers.get("X-Request-ID")

    def test_custom_request_id_header(self, client):
        """Test that X-Request-ID header is used as correlation ID."""
        response = client.get(
            "/health/healthz",
            headers={"X-Request-ID": "custom-id-123"},
        )

        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "custom-id-123"

    def test_error_payload_carries_correlation_id(self, client):
        """Test error responses echo the request's correlation ID."""
        response = client.get(
            "/api/members/999999",
            headers={"X-Request-ID": "trace-42"},
        )

        assert response.status_code == 404
        assert response.get_json()["correlationId"] == "trace-42"

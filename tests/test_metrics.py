"""Tests for the Prometheus metrics endpoint."""

from typing import Any


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    def test_metrics_endpoint_returns_prometheus_format(self, client: Any) -> None:
        """Test metrics endpoint returns Prometheus text format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.content_type.startswith("text/plain")
        assert len(response.get_data(as_text=True)) > 0

    def test_metrics_include_query_counters(self, client: Any) -> None:
        """Test the performance monitor's collectors are exported."""
        client.get("/api/members")

        data = client.get("/metrics").get_data(as_text=True)

        assert "db_query_total" in data
        assert "http_request_duration_seconds" in data
        assert "http_active_requests" in data

    def test_metrics_endpoint_is_read_only(self, client: Any) -> None:
        """Test POST is rejected."""
        response = client.post("/metrics")

        assert response.status_code == 405

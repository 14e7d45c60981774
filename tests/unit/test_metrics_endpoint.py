"""
Unit tests for metrics endpoint.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from hotel_booking.main import app
from hotel_booking.metrics import (
    events_dispatched,
    operation_duration,
    operations_total,
    outbox_pending,
    payment_transitions,
    room_conflicts,
)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)


@pytest.mark.unit
def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    """Test that /metrics endpoint returns Prometheus text format."""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


@pytest.mark.unit
def test_metrics_endpoint_contains_booking_metrics(client: TestClient) -> None:
    """Test that /metrics endpoint includes the booking engine metrics."""
    operations_total.labels(operation="approve", outcome="success").inc()
    operation_duration.labels(operation="approve").observe(0.02)
    room_conflicts.labels(source="precheck").inc()
    payment_transitions.labels(status="AUTHORIZED").inc()
    events_dispatched.labels(event_type="booking.created", status="sent").inc()
    outbox_pending.set(3)

    content = client.get("/metrics").text

    assert "hotel_booking_operations_total" in content
    assert "hotel_booking_operation_duration_seconds" in content
    assert "hotel_booking_room_conflicts_total" in content
    assert "hotel_booking_payment_transitions_total" in content
    assert "hotel_booking_events_dispatched_total" in content
    assert "hotel_booking_outbox_pending 3.0" in content


@pytest.mark.unit
def test_metrics_endpoint_includes_help_and_type_metadata(client: TestClient) -> None:
    """Test that metrics include Prometheus HELP and TYPE metadata."""
    content = client.get("/metrics").text

    assert "# HELP hotel_booking_operations_total" in content
    assert "# TYPE hotel_booking_operations_total counter" in content
    assert "# TYPE hotel_booking_outbox_pending gauge" in content

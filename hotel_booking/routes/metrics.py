"""
Prometheus metrics endpoint for monitoring the booking engine.

Metric families (defined in hotel_booking.metrics):
    hotel_booking_operations_total{operation,outcome}: outcome is "success" or an error code
    hotel_booking_operation_duration_seconds{operation}
    hotel_booking_room_conflicts_total{source}: "precheck" or "constraint" (room-night index)
    hotel_booking_payment_transitions_total{status}
    hotel_booking_events_dispatched_total{event_type,status}
    hotel_booking_outbox_pending: undelivered booking events at the last dispatch or /ready check

Example:
    GET /metrics

    Response:
        # TYPE hotel_booking_room_conflicts_total counter
        hotel_booking_room_conflicts_total{source="constraint"} 3.0
        hotel_booking_operations_total{operation="check_out",outcome="BALANCE_DUE"} 1.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text-based exposition format.

    Returns:
        Response: Metrics in Prometheus format with Content-Type: text/plain
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

"""
Prometheus metrics for booking operations, room conflicts, payments and the event outbox.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., bookings created)
    - Histogram: Observations bucketed by value (e.g., operation latency)
    - Gauge: Point-in-time value that can go up or down (e.g., outbox backlog)

Example:
    >>> from hotel_booking.metrics import operation_duration, operations_total
    >>> with operation_duration.labels(operation="approve").time():
    ...     service.approve(42)
    ...     operations_total.labels(operation="approve", outcome="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Booking Operation Metrics
# =============================================================================

operations_total = Counter(
    "hotel_booking_operations_total",
    "Total booking engine operations by outcome",
    ["operation", "outcome"],
)
"""
Counter for booking engine operations.

Labels:
    operation: create_booking, approve, reject, check_in, add_charge, check_out, cancel, reschedule
    outcome: success, or the error code that refused the operation (e.g. ROOM_UNAVAILABLE)
"""

operation_duration = Histogram(
    "hotel_booking_operation_duration_seconds",
    "Duration of booking engine operations in seconds",
    ["operation"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, float("inf")),
)
"""
Histogram for operation duration, including the database transaction.

Labels:
    operation: Operation name
"""

room_conflicts = Counter(
    "hotel_booking_room_conflicts_total",
    "Room availability conflicts detected",
    ["source"],
)
"""
Counter for refused room claims.

Labels:
    source: precheck (overlap query) or constraint (unique room-night index)
"""

# =============================================================================
# Payment Metrics
# =============================================================================

payment_transitions = Counter(
    "hotel_booking_payment_transitions_total",
    "Payment status transitions",
    ["status"],
)
"""
Counter for payment state changes.

Labels:
    status: AUTHORIZED, CAPTURED, VOIDED, FAILED
"""

# =============================================================================
# Event Outbox Metrics
# =============================================================================

events_dispatched = Counter(
    "hotel_booking_events_dispatched_total",
    "Outbox events handed to the notification dispatcher",
    ["event_type", "status"],
)
"""
Counter for outbox delivery attempts.

Labels:
    event_type: booking.created, checkin.welcome, ...
    status: sent, retry, failed
"""

outbox_pending = Gauge(
    "hotel_booking_outbox_pending",
    "Number of outbox events waiting for delivery",
)
"""Gauge updated after every dispatch batch and readiness probe."""

"""
Async integration tests for the booking API.

Exercises the application over ASGI with httpx, the way an async client
or gateway would call it, including overlapping in-flight requests.
"""

from __future__ import annotations

import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import Engine

from hotel_booking.dependencies import get_booking_service, get_db_engine
from hotel_booking.main import app
from hotel_booking.services.booking import BookingService

BOOKING = {
    "guest_id": "guest-1",
    "room_number": "203",
    "room_type": "Deluxe",
    "check_in": "2026-04-01",
    "check_out": "2026-04-05",
    "total_price": "500",
}


@pytest_asyncio.fixture
async def async_client(
    db_engine: Engine, service: BookingService
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the per-test database and service."""
    app.dependency_overrides[get_db_engine] = lambda: db_engine
    app.dependency_overrides[get_booking_service] = lambda: service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_health_over_asgi(async_client: AsyncClient) -> None:
    """Test that /health responds through the async transport."""
    response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_booking_round_trip(async_client: AsyncClient) -> None:
    created = await async_client.post("/bookings", json=BOOKING)
    booking_id = created.json()["booking"]["id"]

    fetched = await async_client.get(f"/bookings/{booking_id}")

    assert created.status_code == 201
    assert fetched.status_code == 200
    assert fetched.json()["room_number"] == "203"
    assert fetched.json()["total_price"] == "500.00"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_concurrent_requests_for_one_room(async_client: AsyncClient) -> None:
    """Test that overlapping in-flight requests for one room yield one 201 and 409s."""
    responses = await asyncio.gather(
        *(
            async_client.post("/bookings", json={**BOOKING, "guest_id": f"guest-{n}"})
            for n in range(5)
        )
    )

    codes = sorted(response.status_code for response in responses)
    assert codes == [201, 409, 409, 409, 409]
    assert all(
        response.json()["code"] == "ROOM_UNAVAILABLE"
        for response in responses
        if response.status_code == 409
    )

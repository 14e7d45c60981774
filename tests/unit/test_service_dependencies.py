"""
Unit tests for FastAPI dependency injection.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from hotel_booking.dependencies import (
    get_actor,
    get_booking_service,
    get_db_engine,
    get_event_dispatcher,
)
from hotel_booking.services.booking import BookingService
from hotel_booking.services.events import LoggingNotificationDispatcher


@pytest.mark.unit
def test_get_db_engine_dependency() -> None:
    """Test that get_db_engine returns the engine instance."""
    engine = next(get_db_engine())

    assert isinstance(engine, Engine)


@pytest.mark.unit
def test_dependency_injection_provides_same_engine() -> None:
    """Test that multiple calls get the same engine instance."""
    assert next(get_db_engine()) is next(get_db_engine())


@pytest.mark.unit
def test_booking_service_uses_given_engine() -> None:
    mock_engine = Mock(spec=Engine)

    service = get_booking_service(mock_engine)

    assert isinstance(service, BookingService)
    assert service.engine is mock_engine
    assert service.policy.min_nights >= 1


@pytest.mark.unit
def test_default_event_dispatcher_logs() -> None:
    assert isinstance(get_event_dispatcher(), LoggingNotificationDispatcher)


@pytest.mark.unit
def test_actor_defaults_to_system() -> None:
    app = FastAPI()

    @app.get("/whoami")
    def whoami(actor: str = Depends(get_actor)) -> dict[str, str]:
        return {"actor": actor}

    client = TestClient(app)

    assert client.get("/whoami").json() == {"actor": "system"}
    assert client.get("/whoami", headers={"X-Actor": "reception@hotel"}).json() == {
        "actor": "reception@hotel"
    }


@pytest.mark.unit
def test_dependency_injection_can_be_overridden() -> None:
    """Test that dependency can be overridden for testing."""
    app = FastAPI()

    @app.get("/test")
    def test_endpoint(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/test")

    assert response.status_code == 200
    assert response.json() == {"engine_name": "mock_engine"}

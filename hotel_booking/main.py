# hotel_booking/main.py

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from hotel_booking.config import ALLOWED_ORIGINS
from hotel_booking.errors import BookingError
from hotel_booking.logging_config import setup_logging
from hotel_booking.middleware import RequestIDMiddleware
from hotel_booking.routes._booking_helpers import (
    booking_error_handler,
    internal_error_handler,
    request_validation_handler,
)
from hotel_booking.routes.bookings import router as bookings_router
from hotel_booking.routes.events import router as events_router
from hotel_booking.routes.health import router as health_router
from hotel_booking.routes.metrics import router as metrics_router
from hotel_booking.routes.reception import router as reception_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Hotel Booking Engine",
    description="Booking lifecycle and room-availability API",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Error bodies
app.add_exception_handler(BookingError, booking_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(SQLAlchemyError, internal_error_handler)
app.add_exception_handler(Exception, internal_error_handler)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(bookings_router, tags=["Bookings"])
app.include_router(reception_router, prefix="/reception", tags=["Reception"])
app.include_router(events_router, tags=["Events"])


@app.on_event("startup")
def startup_event() -> None:
    """Initialize application on startup."""
    from hotel_booking.db.engine import engine

    logger.info(
        "application_started",
        database=engine.url.render_as_string(hide_password=True),
    )

from datetime import datetime
from typing import Optional

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from hotel_booking.models.audit import AuditLogEntry


def record_audit(
    conn: Connection,
    actor: str,
    action: str,
    details: str,
    now: datetime,
    reservation_id: Optional[int] = None,
    outcome: str = "Success",
) -> None:
    """
    Append an entry to the booking audit trail.

    Args:
        conn: Active connection. Successful transitions pass the operation's own
            connection so the entry commits with the change.
        actor: Who performed the action (staff e-mail, guest id, "system")
        action: Action name ("BOOKING_APPROVED", "GUEST_CHECKOUT", ...)
        details: Human-readable description
        now: Entry timestamp
        reservation_id: Reservation concerned, if any
        outcome: "Success" or "Failed"
    """
    conn.execute(
        insert(AuditLogEntry).values(
            actor=actor,
            action=action,
            reservation_id=reservation_id,
            details=details,
            outcome=outcome,
            created_at=now,
        )
    )

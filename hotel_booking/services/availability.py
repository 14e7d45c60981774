"""
Room availability: fast-path overlap check and the per-night claim index.

Two layers decide whether a room can be reserved:

1. ``check_overlap`` reads the reservations table and reports the earliest
   conflicting stay, so the caller gets a message naming the dates it clashes with.
2. ``claim`` inserts one ``room_nights`` row per occupied night. The unique
   (hotel_code, room_number, night) constraint is the actual source of truth:
   two transactions that both passed the read cannot both commit their claims.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import structlog
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from hotel_booking.db.readers.availability import find_overlapping_reservation
from hotel_booking.db.writers.room_nights import claim_room_nights, release_room_nights
from hotel_booking.errors import RoomUnavailable
from hotel_booking.metrics import room_conflicts
from hotel_booking.utils.datetime import stay_nights

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RoomKey:
    """Canonical room identity: hotel code plus room number."""

    hotel_code: str
    room_number: str

    @property
    def label(self) -> str:
        """Display label for messages ("Room 203")."""
        return f"Room {self.room_number}"

    def __str__(self) -> str:
        return f"{self.hotel_code}/{self.room_number}"


@dataclass(frozen=True)
class AvailabilityResult:
    """
    Outcome of an overlap check.

    Attributes:
        available: True if no active reservation overlaps the requested stay
        conflict_reservation_id: Id of the earliest conflicting reservation
        conflict_check_in: First night of the conflicting stay
        conflict_check_out: Departure day of the conflicting stay
    """

    available: bool
    conflict_reservation_id: Optional[int] = None
    conflict_check_in: Optional[date] = None
    conflict_check_out: Optional[date] = None

    def raise_if_conflict(self, room: RoomKey) -> None:
        if not self.available:
            raise RoomUnavailable(room.label, self.conflict_check_in, self.conflict_check_out)


class AvailabilityIndex:
    """Answers and enforces "can this room be held for [check_in, check_out)?"."""

    def check_overlap(
        self,
        conn: Connection,
        room: RoomKey,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[int] = None,
    ) -> AvailabilityResult:
        """
        Look for an active reservation overlapping the requested stay.

        Cancelled and rejected reservations never conflict, and a stay that
        starts on another's check-out day is not an overlap.

        Args:
            conn: Active connection
            room: Room being requested
            check_in: First night requested
            check_out: Departure day requested (exclusive)
            exclude_reservation_id: Reservation to ignore (a reschedule's own row)

        Returns:
            AvailabilityResult: available, or the conflicting stay's dates
        """
        conflict = find_overlapping_reservation(
            conn,
            room.hotel_code,
            room.room_number,
            check_in,
            check_out,
            exclude_reservation_id=exclude_reservation_id,
        )
        if conflict is None:
            return AvailabilityResult(available=True)

        room_conflicts.labels(source="precheck").inc()
        logger.info(
            "room_conflict_detected",
            room=str(room),
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat(),
            conflict_reservation_id=conflict["id"],
        )
        return AvailabilityResult(
            available=False,
            conflict_reservation_id=conflict["id"],
            conflict_check_in=conflict["check_in"],
            conflict_check_out=conflict["check_out"],
        )

    def claim(
        self,
        conn: Connection,
        reservation_id: int,
        room: RoomKey,
        check_in: date,
        check_out: date,
    ) -> None:
        """
        Claim the stay's nights for a reservation.

        The claims are written in a savepoint so a conflict can be reported
        without poisoning the caller's transaction; the caller still aborts it
        by letting RoomUnavailable propagate.

        Raises:
            RoomUnavailable: Another reservation already holds one of the nights
        """
        nights = stay_nights(check_in, check_out)
        try:
            with conn.begin_nested():
                claim_room_nights(conn, reservation_id, room.hotel_code, room.room_number, nights)
        except IntegrityError as e:
            room_conflicts.labels(source="constraint").inc()
            logger.warning(
                "room_night_claim_conflict",
                reservation_id=reservation_id,
                room=str(room),
                error=str(e.orig),
            )
            conflict = find_overlapping_reservation(
                conn,
                room.hotel_code,
                room.room_number,
                check_in,
                check_out,
                exclude_reservation_id=reservation_id,
            )
            if conflict:
                raise RoomUnavailable(room.label, conflict["check_in"], conflict["check_out"]) from e
            raise RoomUnavailable(room.label) from e

    def release(self, conn: Connection, reservation_id: int) -> int:
        """Free every night held by a reservation. Returns the number released."""
        released = release_room_nights(conn, reservation_id)
        logger.debug("room_nights_released", reservation_id=reservation_id, nights=released)
        return released

    def move(
        self,
        conn: Connection,
        reservation_id: int,
        room: RoomKey,
        check_in: date,
        check_out: date,
    ) -> None:
        """
        Replace a reservation's claims with claims on a new room or date range.

        Raises:
            RoomUnavailable: The target nights are held by another reservation
        """
        self.release(conn, reservation_id)
        self.claim(conn, reservation_id, room, check_in, check_out)

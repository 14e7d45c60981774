"""Create booking engine tables

Revision ID: 3a1f9c2d7b64
Revises:
Create Date: 2026-10-19 09:12:31.114208

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3a1f9c2d7b64"
down_revision = None
branch_labels = None
depends_on = None


def _status(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guest_id", sa.String(length=64), nullable=False),
        sa.Column("hotel_code", sa.String(length=64), nullable=False),
        sa.Column("room_number", sa.String(length=32), nullable=False),
        sa.Column("room_name", sa.String(length=128), nullable=True),
        sa.Column("room_type", sa.String(length=64), nullable=False),
        sa.Column("check_in", sa.Date(), nullable=False),
        sa.Column("check_out", sa.Date(), nullable=False),
        sa.Column("actual_check_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_check_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("advance_deposit", sa.Numeric(12, 2), nullable=False),
        sa.Column("assigned_room_number", sa.String(length=32), nullable=True),
        sa.Column("id_verified", sa.Boolean(), nullable=False),
        sa.Column(
            "status",
            _status(
                "reservation_status",
                "PENDING_APPROVAL",
                "CONFIRMED",
                "CHECKED_IN",
                "CHECKED_OUT",
                "REJECTED",
                "CANCELLED",
            ),
            nullable=False,
        ),
        sa.Column("status_reason", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("check_out > check_in", name="ck_reservations_stay_range"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reservations_guest_id", "reservations", ["guest_id"])
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index(
        "ix_reservations_room_stay",
        "reservations",
        ["hotel_code", "room_number", "check_in", "check_out"],
    )

    op.create_table(
        "reservation_charges",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=256), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_reservation_charges_amount_positive"),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reservation_id", "position", name="uq_reservation_charges_position"),
    )
    op.create_index(
        "ix_reservation_charges_reservation_id", "reservation_charges", ["reservation_id"]
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("advance_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("final_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "status",
            _status(
                "payment_status",
                "NOT_STARTED",
                "AUTHORIZED",
                "CAPTURED",
                "VOIDED",
                "REFUNDED",
                "FAILED",
            ),
            nullable=False,
        ),
        sa.Column("idempotency_key", sa.String(length=128), nullable=False),
        sa.Column(
            "payment_method",
            _status("payment_method", "card_on_file", "cash", "card"),
            nullable=False,
        ),
        sa.Column("transaction_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reservation_id"),
        sa.UniqueConstraint("idempotency_key"),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("invoice_type", _status("invoice_type", "PROFORMA", "FINAL"), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "status",
            _status("invoice_status", "DRAFT", "ISSUED", "PAID", "CANCELLED"),
            nullable=False,
        ),
        sa.Column("issue_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_invoices_reservation_id", "invoices", ["reservation_id"])

    # Availability index: a night of a room can be claimed by one reservation only
    op.create_table(
        "room_nights",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hotel_code", sa.String(length=64), nullable=False),
        sa.Column("room_number", sa.String(length=32), nullable=False),
        sa.Column("night", sa.Date(), nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("hotel_code", "room_number", "night", name="uq_room_nights_room_night"),
    )
    op.create_index("ix_room_nights_reservation_id", "room_nights", ["reservation_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hotel_code", sa.String(length=64), nullable=False),
        sa.Column("room_number", sa.String(length=32), nullable=False),
        sa.Column("room_type", sa.String(length=64), nullable=False),
        sa.Column(
            "status",
            _status("room_status", "Available", "Occupied", "Maintenance", "Cleaning"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("hotel_code", "room_number", name="uq_rooms_room_key"),
    )

    op.create_table(
        "booking_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_key", sa.String(length=128), nullable=False),
        sa.Column(
            "event_type",
            _status(
                "event_type",
                "booking.created",
                "booking.confirmed",
                "booking.rejected",
                "booking.cancelled",
                "checkin.welcome",
                "checkout.thanks",
                "housekeeping.requested",
            ),
            nullable=False,
        ),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("guest_id", sa.String(length=64), nullable=False),
        sa.Column("message", sa.String(length=512), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", _status("event_status", "PENDING", "SENT", "FAILED"), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("dispatched_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_key"),
    )
    op.create_index("ix_booking_events_reservation_id", "booking_events", ["reservation_id"])
    op.create_index("ix_booking_events_status", "booking_events", ["status"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor", sa.String(length=128), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("outcome", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index("ix_audit_log_reservation_id", "audit_log", ["reservation_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("audit_log")
    op.drop_table("booking_events")
    op.drop_table("rooms")
    op.drop_table("room_nights")
    op.drop_table("invoices")
    op.drop_table("payments")
    op.drop_table("reservation_charges")
    op.drop_table("reservations")

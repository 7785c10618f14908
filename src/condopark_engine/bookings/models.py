"""SQLAlchemy model for bookings."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from condopark_engine.common.models import Base, TimestampMixin, generate_uuid

BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no_show")

# Statuses that hold a slot's time window.
ACTIVE_STATUSES = ("pending", "confirmed")


class BookingModel(Base, TimestampMixin):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_booking_interval"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="ck_booking_status",
        ),
        Index("ix_booking_slot_status_window", "slot_id", "status", "start_time", "end_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    slot_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("slots.id"), nullable=False, index=True
    )
    renter_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("principals.id"), nullable=False, index=True
    )
    # Denormalized from the slot so isolation filters need no join.
    tenant_code: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("tenants.code", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

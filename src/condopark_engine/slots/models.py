"""SQLAlchemy model for parking slots."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from condopark_engine.common.models import Base, TimestampMixin, generate_uuid

SLOT_STATUSES = ("active", "maintenance", "disabled")


class SlotModel(Base, TimestampMixin):
    __tablename__ = "slots"
    __table_args__ = (
        UniqueConstraint("tenant_code", "slot_number", name="uq_slot_tenant_number"),
        CheckConstraint("rate_per_hour > 0", name="ck_slot_rate_positive"),
        CheckConstraint(
            "status IN ('active', 'maintenance', 'disabled')", name="ck_slot_status"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_code: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("tenants.code", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("principals.id"), nullable=False, index=True
    )
    slot_number: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    rate_per_hour: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

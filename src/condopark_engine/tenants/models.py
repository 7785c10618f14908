"""SQLAlchemy model for tenants (communities)."""

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from condopark_engine.common.models import Base, TimestampMixin

TENANT_STATUSES = ("active", "inactive")


class TenantModel(Base, TimestampMixin):
    __tablename__ = "tenants"
    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="ck_tenant_status"),
    )

    # The code is both the primary key and a shared secret; dependents
    # reference it with ON UPDATE CASCADE so it can be rotated.
    code: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

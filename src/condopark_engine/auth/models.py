"""SQLAlchemy model for principals (residents)."""

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from condopark_engine.common.models import Base, TimestampMixin, generate_uuid


class PrincipalModel(Base, TimestampMixin):
    __tablename__ = "principals"
    __table_args__ = (
        UniqueConstraint("tenant_code", "unit_id", name="uq_principal_tenant_unit"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    tenant_code: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("tenants.code", onupdate="CASCADE", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    unit_id: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from devicelist.models.base import Base, TimestampMixin, generate_device_id, utcnow


class DeviceKind(str, enum.Enum):
    desktop = "desktop"
    mobile = "mobile"
    backup_key = "backup-key"


class Device(TimestampMixin, Base):
    __tablename__ = "devices"
    __table_args__ = (
        # At most one current device.
        Index(
            "uq_devices_single_current",
            "is_current_device",
            unique=True,
            postgresql_where=text("is_current_device"),
            sqlite_where=text("is_current_device = 1"),
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_device_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[DeviceKind] = mapped_column(
        Enum(DeviceKind, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    is_current_device: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class DeviceBadge(Base):
    """Membership in the "recently changed" set. Cleared by acknowledgement."""

    __tablename__ = "device_badges"

    device_id: Mapped[str] = mapped_column(
        ForeignKey("devices.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

"""Device service: register, rename, revoke, change badges, snapshots.

This is the state holder the projector reads from. Revocations and new
registrations mark the device as changed; clear_badges acknowledges them.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from devicelist.models.device import Device, DeviceBadge, DeviceKind
from devicelist.schemas.device import DeviceRecord

logger = logging.getLogger("devicelist.devices")


def parse_kind(value: str) -> DeviceKind:
    try:
        return DeviceKind(value)
    except ValueError:
        valid = ", ".join(k.value for k in DeviceKind)
        raise ValueError(f"Invalid kind '{value}'. Must be one of: {valid}")


async def add_device(
    db: AsyncSession,
    *,
    name: str,
    kind: DeviceKind,
    is_current_device: bool = False,
) -> Device:
    """Register a device. A new current device demotes the previous one."""
    if is_current_device:
        await db.execute(
            update(Device)
            .where(Device.is_current_device == True)  # noqa: E712
            .values(is_current_device=False)
        )

    device = Device(name=name, kind=kind, is_current_device=is_current_device)
    db.add(device)
    await db.flush()
    await mark_changed(db, device.id)

    logger.info("device added id=%s kind=%s current=%s", device.id, kind.value, is_current_device)
    return device


async def get_device(db: AsyncSession, device_id: str) -> Device:
    """Get a single device. Raises NoResultFound if unknown."""
    result = await db.execute(select(Device).where(Device.id == device_id))
    return result.scalar_one()


async def get_devices(db: AsyncSession) -> list[Device]:
    result = await db.execute(select(Device).order_by(Device.created_at.asc(), Device.id.asc()))
    return list(result.scalars().all())


async def rename_device(db: AsyncSession, device_id: str, name: str) -> Device:
    device = await get_device(db, device_id)
    device.name = name
    await db.flush()
    return device


async def revoke_device(
    db: AsyncSession,
    device_id: str,
    *,
    revoked_at: datetime | None = None,
) -> Device:
    """Revoke a device and flag it as newly changed."""
    device = await get_device(db, device_id)
    if device.revoked_at is not None:
        raise ValueError("Device already revoked.")

    device.revoked_at = revoked_at or datetime.now(timezone.utc)
    await db.flush()
    await mark_changed(db, device.id)

    logger.info("device revoked id=%s", device.id)
    return device


async def mark_changed(db: AsyncSession, device_id: str) -> None:
    """Add a device id to the changed set. No-op if already present."""
    existing = await db.get(DeviceBadge, device_id)
    if existing is None:
        db.add(DeviceBadge(device_id=device_id))
        await db.flush()


async def get_changed_ids(db: AsyncSession) -> frozenset[str]:
    result = await db.execute(select(DeviceBadge.device_id))
    return frozenset(result.scalars().all())


async def clear_badges(db: AsyncSession) -> int:
    """Acknowledge every pending change. Returns the number cleared."""
    result = await db.execute(delete(DeviceBadge))
    await db.flush()
    cleared = result.rowcount or 0
    logger.info("device badges cleared count=%d", cleared)
    return cleared


async def load_snapshot(db: AsyncSession) -> tuple[dict[str, DeviceRecord], frozenset[str]]:
    """Read the device map and changed-id set for one projection."""
    devices = await get_devices(db)
    device_map = {d.id: DeviceRecord.model_validate(d) for d in devices}
    changed_ids = await get_changed_ids(db)
    return device_map, changed_ids

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from devicelist.models.device import DeviceKind
from devicelist.schemas.device import DeviceRecord
from devicelist.services import device_service


@pytest.mark.asyncio
async def test_add_device_marks_changed(db_session: AsyncSession):
    device = await device_service.add_device(
        db_session, name="Work laptop", kind=DeviceKind.desktop
    )
    await db_session.commit()

    assert device.id.startswith("dev_")
    assert device.revoked_at is None
    assert device.is_current_device is False
    assert await device_service.get_changed_ids(db_session) == frozenset({device.id})


@pytest.mark.asyncio
async def test_new_current_device_demotes_previous(db_session: AsyncSession):
    old = await device_service.add_device(
        db_session, name="Old phone", kind=DeviceKind.mobile, is_current_device=True
    )
    new = await device_service.add_device(
        db_session, name="New phone", kind=DeviceKind.mobile, is_current_device=True
    )
    await db_session.commit()

    await db_session.refresh(old)
    assert old.is_current_device is False
    assert new.is_current_device is True


@pytest.mark.asyncio
async def test_get_device_unknown(db_session: AsyncSession):
    with pytest.raises(NoResultFound):
        await device_service.get_device(db_session, "dev_missing")


@pytest.mark.asyncio
async def test_rename_device(db_session: AsyncSession):
    device = await device_service.add_device(db_session, name="Phone", kind=DeviceKind.mobile)
    await device_service.rename_device(db_session, device.id, "Pixel")
    await db_session.commit()

    fetched = await device_service.get_device(db_session, device.id)
    assert fetched.name == "Pixel"


@pytest.mark.asyncio
async def test_revoke_device(db_session: AsyncSession):
    device = await device_service.add_device(db_session, name="Desk", kind=DeviceKind.desktop)
    await device_service.clear_badges(db_session)

    when = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    revoked = await device_service.revoke_device(db_session, device.id, revoked_at=when)
    await db_session.commit()

    assert revoked.revoked_at is not None
    assert await device_service.get_changed_ids(db_session) == frozenset({device.id})


@pytest.mark.asyncio
async def test_revoke_twice_rejected(db_session: AsyncSession):
    device = await device_service.add_device(db_session, name="Desk", kind=DeviceKind.desktop)
    await device_service.revoke_device(db_session, device.id)

    with pytest.raises(ValueError, match="already revoked"):
        await device_service.revoke_device(db_session, device.id)


@pytest.mark.asyncio
async def test_mark_changed_is_idempotent(db_session: AsyncSession):
    device = await device_service.add_device(db_session, name="Desk", kind=DeviceKind.desktop)
    await device_service.mark_changed(db_session, device.id)
    await device_service.mark_changed(db_session, device.id)
    await db_session.commit()

    assert await device_service.get_changed_ids(db_session) == frozenset({device.id})


@pytest.mark.asyncio
async def test_clear_badges(db_session: AsyncSession):
    await device_service.add_device(db_session, name="A", kind=DeviceKind.desktop)
    await device_service.add_device(db_session, name="B", kind=DeviceKind.mobile)

    cleared = await device_service.clear_badges(db_session)
    await db_session.commit()

    assert cleared == 2
    assert await device_service.get_changed_ids(db_session) == frozenset()


@pytest.mark.asyncio
async def test_load_snapshot(db_session: AsyncSession):
    desk = await device_service.add_device(db_session, name="Desk", kind=DeviceKind.desktop)
    key = await device_service.add_device(db_session, name="Key", kind=DeviceKind.backup_key)
    await device_service.clear_badges(db_session)
    await device_service.revoke_device(db_session, desk.id)
    await db_session.commit()

    device_map, changed_ids = await device_service.load_snapshot(db_session)

    assert set(device_map) == {desk.id, key.id}
    assert isinstance(device_map[key.id], DeviceRecord)
    assert device_map[key.id].kind == DeviceKind.backup_key
    assert device_map[desk.id].revoked_at is not None
    assert changed_ids == frozenset({desk.id})


def test_parse_kind():
    assert device_service.parse_kind("backup-key") == DeviceKind.backup_key
    with pytest.raises(ValueError, match="Invalid kind"):
        device_service.parse_kind("tablet")

"""Devices router: the device list view plus the actions that feed it.

Endpoints:
- GET /devices: Device list view (ordered items, revoked items, nudge)
- GET /devices/{device_id}: Full record for a single device
- POST /devices: Register a device
- PATCH /devices/{device_id}: Rename a device
- POST /devices/{device_id}/revoke: Revoke a device
- POST /devices/clear-badges: Acknowledge newly changed devices
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from devicelist.dependencies import get_db
from devicelist.derived_views.devices import device_list_view
from devicelist.schemas.device import DeviceCreate, DeviceRead, DeviceRename
from devicelist.services import device_service

router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("")
async def list_devices(db: AsyncSession = Depends(get_db)):
    return await device_list_view(db)


@router.post("/clear-badges")
async def clear_badges(db: AsyncSession = Depends(get_db)):
    """Called when the device list is dismissed."""
    cleared = await device_service.clear_badges(db)
    return {"cleared": cleared}


@router.get("/{device_id}", response_model=DeviceRead)
async def get_device(device_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await device_service.get_device(db, device_id)
    except NoResultFound:
        raise HTTPException(status_code=404, detail="Device not found")


@router.post("", response_model=DeviceRead, status_code=201)
async def add_device(body: DeviceCreate, db: AsyncSession = Depends(get_db)):
    try:
        kind = device_service.parse_kind(body.kind)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        device = await device_service.add_device(
            db,
            name=body.name,
            kind=kind,
            is_current_device=body.is_current_device,
        )
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Another device was registered as current")
    await db.refresh(device)
    return device


@router.patch("/{device_id}", response_model=DeviceRead)
async def rename_device(
    device_id: str,
    body: DeviceRename,
    db: AsyncSession = Depends(get_db),
):
    try:
        device = await device_service.rename_device(db, device_id, body.name)
    except NoResultFound:
        raise HTTPException(status_code=404, detail="Device not found")
    await db.refresh(device)
    return device


@router.post("/{device_id}/revoke", response_model=DeviceRead)
async def revoke_device(device_id: str, db: AsyncSession = Depends(get_db)):
    try:
        device = await device_service.revoke_device(db, device_id)
    except NoResultFound:
        raise HTTPException(status_code=404, detail="Device not found")
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await db.refresh(device)
    return device

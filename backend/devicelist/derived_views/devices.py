"""Derived view builder for the device list screen.

The projector is pure: it reads a snapshot (device map + changed-id set),
never mutates it, and returns freshly built structures on every call.
- Current device first, then names in locale-aware order
- Revoked devices split out, order preserved
- Items carry ids only; full records are looked up separately
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from devicelist.core.collation import collation_key
from devicelist.models.device import DeviceKind
from devicelist.schemas.device import DeviceRecord, DisplayItem, PresentationModel
from devicelist.services import device_service

logger = logging.getLogger("devicelist.devices")

# Highlight vocabulary understood by the add-device flow.
HIGHLIGHT_COMPUTER = "computer"
HIGHLIGHT_PHONE = "phone"
HIGHLIGHT_PAPER_KEY = "paper key"


class SnapshotError(ValueError):
    """The snapshot handed to the projector breaks its contract."""


def sort_key(device: DeviceRecord) -> tuple:
    return (not device.is_current_device, collation_key(device.name))


def device_to_item(device: DeviceRecord) -> DisplayItem:
    return DisplayItem(id=device.id, key=device.id)


def split_and_sort_devices(
    devices: Iterable[DeviceRecord],
) -> tuple[list[DeviceRecord], list[DeviceRecord]]:
    """Return (revoked, normal), each in display order."""
    revoked: list[DeviceRecord] = []
    normal: list[DeviceRecord] = []
    # sorted() is stable: equal keys keep map iteration order.
    for device in sorted(devices, key=sort_key):
        (revoked if device.revoked_at is not None else normal).append(device)
    return revoked, normal


def _materialize(device_map: Mapping[str, Any]) -> list[DeviceRecord]:
    devices = []
    current_ids = []
    for device_id, value in device_map.items():
        device = DeviceRecord.model_validate(value)
        if device.id != device_id:
            raise SnapshotError(
                f"Device map key '{device_id}' does not match record id '{device.id}'"
            )
        if device.is_current_device:
            current_ids.append(device.id)
        devices.append(device)
    if len(current_ids) > 1:
        raise SnapshotError(f"More than one current device: {', '.join(current_ids)}")
    return devices


class DeviceListProjector:
    """Projects a device snapshot into the device list presentation model."""

    def compute(
        self,
        device_map: Mapping[str, Any],
        changed_ids: Iterable[str],
    ) -> PresentationModel:
        """Build the presentation model for one snapshot.

        Raises SnapshotError (or pydantic.ValidationError for malformed
        records) when the caller violates the snapshot contract. Ids in
        changed_ids that match no revoked device are ignored.
        """
        devices = _materialize(device_map)
        revoked, normal = split_and_sort_devices(devices)

        revoked_items = [device_to_item(d) for d in revoked]
        normal_items = [device_to_item(d) for d in normal]

        newly_revoked_ids = {item.id for item in revoked_items} & set(changed_ids)
        show_nudge = bool(devices) and not any(
            d.kind == DeviceKind.backup_key for d in devices
        )

        logger.debug(
            "projected devices normal=%d revoked=%d newly_revoked=%d nudge=%s",
            len(normal_items),
            len(revoked_items),
            len(newly_revoked_ids),
            show_nudge,
        )
        return PresentationModel(
            normal_items=normal_items,
            revoked_items=revoked_items,
            newly_revoked_count=len(newly_revoked_ids),
            show_nudge=show_nudge,
        )


def add_device_highlight(model: PresentationModel) -> list[str]:
    """Options the add-device flow should highlight when opened from this screen."""
    return [HIGHLIGHT_PAPER_KEY] if model.show_nudge else []


async def device_list_view(db: AsyncSession) -> dict:
    """Device list for the renderer: ordered items, revoked items, badge and nudge flags."""
    device_map, changed_ids = await device_service.load_snapshot(db)
    model = DeviceListProjector().compute(device_map, changed_ids)

    return {
        "title": model.title,
        "items": [item.model_dump() for item in model.normal_items],
        "revoked_items": [item.model_dump() for item in model.revoked_items],
        "newly_revoked_count": model.newly_revoked_count,
        "has_newly_revoked": model.has_newly_revoked,
        "show_paper_key_nudge": model.show_nudge,
        "add_device_highlight": add_device_highlight(model),
    }

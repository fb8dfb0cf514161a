from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from devicelist.models.device import DeviceKind


class DeviceRecord(BaseModel):
    """One registered device as the projector sees it."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    kind: DeviceKind
    is_current_device: bool = False
    revoked_at: datetime | None = None


class DisplayItem(BaseModel):
    """Reference to a device row; the renderer looks the full record up by id."""

    model_config = ConfigDict(frozen=True)

    id: str
    key: str
    type: Literal["device"] = "device"


class PresentationModel(BaseModel):
    normal_items: list[DisplayItem]
    revoked_items: list[DisplayItem]
    newly_revoked_count: int
    show_nudge: bool
    title: str = "Devices"

    @property
    def has_newly_revoked(self) -> bool:
        return self.newly_revoked_count > 0


class DeviceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    kind: str = Field(..., description="desktop, mobile, backup-key")
    is_current_device: bool = False


class DeviceRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class DeviceRead(BaseModel):
    id: str
    name: str
    kind: DeviceKind
    is_current_device: bool
    revoked_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

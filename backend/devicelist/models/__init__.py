# Import all models so Base.metadata is populated for create_all.
from devicelist.models.device import Device, DeviceBadge  # noqa: F401

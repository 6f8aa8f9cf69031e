"""Persistence infrastructure for device telemetry storage."""

from .setup import ensure_schema
from .queries import get_device_detail, list_devices

__all__ = [
    "ensure_schema",
    "get_device_detail",
    "list_devices",
]

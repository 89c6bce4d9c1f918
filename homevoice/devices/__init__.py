"""
Device registry and data model.
"""

from homevoice.devices.models import Device, DeviceType, Mutation
from homevoice.devices.registry import DEFAULT_DEVICES, DeviceRegistry

__all__ = [
    "DEFAULT_DEVICES",
    "Device",
    "DeviceRegistry",
    "DeviceType",
    "Mutation",
]

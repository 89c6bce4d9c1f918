"""
Device data model.

Devices are immutable values; the registry replaces them on every change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class DeviceType(str, Enum):
    LIGHT = "light"
    TEMPERATURE = "temperature"
    SECURITY = "security"
    POWER = "power"


DeviceID = str


@dataclass(frozen=True, slots=True)
class Device:
    """A controllable device.

    `value` is only meaningful for temperature devices.
    """

    id: DeviceID
    name: str
    type: DeviceType
    status: bool
    value: Optional[int] = None

    @property
    def status_text(self) -> str:
        """Human-readable state shown next to the device."""
        if self.type is DeviceType.TEMPERATURE:
            return f"{self.value}°C"
        if self.type is DeviceType.SECURITY:
            return "Armed" if self.status else "Disarmed"
        return "On" if self.status else "Off"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "status": self.status,
            "value": self.value,
            "status_text": self.status_text,
        }


@dataclass(frozen=True, slots=True)
class Mutation:
    """A single field change on one device.

    Exactly one of `status` / `value` is set.
    """

    device_id: DeviceID
    status: Optional[bool] = None
    value: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.status is None) == (self.value is None):
            raise ValueError("Mutation must set exactly one of status/value")


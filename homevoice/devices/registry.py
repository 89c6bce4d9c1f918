"""
Device registry.

Holds the current state of the fixed device set. Updates are pure: `apply()`
returns a new registry and leaves untouched devices as the very same objects.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Iterator, Optional, Tuple

from homevoice.devices.models import Device, DeviceID, DeviceType, Mutation
from homevoice.hv_logging import get_logger

log = get_logger("HOMEVOICE.Registry")


LIVING_ROOM_LIGHT = "1"
BEDROOM_LIGHT = "2"
THERMOSTAT = "3"
SECURITY_SYSTEM = "4"
MAIN_POWER = "5"


DEFAULT_DEVICES: Tuple[Device, ...] = (
    Device(LIVING_ROOM_LIGHT, "Living Room Light", DeviceType.LIGHT, False),
    Device(BEDROOM_LIGHT, "Bedroom Light", DeviceType.LIGHT, False),
    Device(THERMOSTAT, "Thermostat", DeviceType.TEMPERATURE, True, 22),
    Device(SECURITY_SYSTEM, "Security System", DeviceType.SECURITY, True),
    Device(MAIN_POWER, "Main Power", DeviceType.POWER, True),
)


class DeviceRegistry:
    """Immutable, ordered collection of devices keyed by id."""

    __slots__ = ("_devices",)

    def __init__(self, devices: Iterable[Device] = DEFAULT_DEVICES) -> None:
        devices = tuple(devices)
        ids = [d.id for d in devices]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate device ids: {ids}")
        self._devices = devices

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeviceRegistry):
            return NotImplemented
        return self._devices == other._devices

    def __repr__(self) -> str:
        return f"DeviceRegistry({list(self._devices)!r})"

    @property
    def ids(self) -> frozenset[DeviceID]:
        return frozenset(d.id for d in self._devices)

    def get(self, device_id: DeviceID) -> Optional[Device]:
        return next((d for d in self._devices if d.id == device_id), None)

    def apply(self, mutations: Iterable[Mutation]) -> "DeviceRegistry":
        devices = self._devices
        changed = False
        for mutation in mutations:
            if not any(d.id == mutation.device_id for d in devices):
                log.warning(
                    "HOMEVOICE.Registry.UnknownDevice",
                    extra={"fields": {"device_id": mutation.device_id}},
                )
                continue
            devices = tuple(_mutate(d, mutation) if d.id == mutation.device_id else d for d in devices)
            changed = True

        if not changed:
            return self
        updated = DeviceRegistry.__new__(DeviceRegistry)
        updated._devices = devices
        return updated

    def to_list(self) -> list[dict]:
        return [d.to_dict() for d in self._devices]


def _mutate(device: Device, mutation: Mutation) -> Device:
    if mutation.status is not None:
        return replace(device, status=mutation.status)
    return replace(device, value=mutation.value)

"""
Command data model.

A Command is the immutable record of one final transcript and what it was
interpreted as.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Tuple

from homevoice.devices.models import Mutation


UNKNOWN_ACTION = "Unknown"

_sequence = itertools.count()


class Intent(str, Enum):
    LIGHT_ON = "LightOn"
    LIGHT_OFF = "LightOff"
    SET_TEMPERATURE = "SetTemperature"
    ARM_SECURITY = "ArmSecurity"
    DISARM_SECURITY = "DisarmSecurity"
    POWER_ON = "PowerOn"
    POWER_OFF = "PowerOff"
    UNKNOWN = "Unknown"


@dataclass(frozen=True, slots=True)
class Interpretation:
    """Result of interpreting one transcript: labels plus 0 or 1 mutation."""

    intent: Intent
    action: str
    device: str = ""
    value: str = ""
    mutations: Tuple[Mutation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.value,
            "action": self.action,
            "device": self.device,
            "value": self.value,
            "mutations": [
                {"device_id": m.device_id, "status": m.status, "value": m.value}
                for m in self.mutations
            ],
        }


def _new_command_id() -> str:
    # Millisecond clock plus a process-wide sequence so two commands in the
    # same millisecond stay distinct.
    return f"{time.time_ns() // 1_000_000}-{next(_sequence)}"


@dataclass(frozen=True, slots=True)
class Command:
    text: str
    action: str
    device: str = ""
    value: str = ""
    id: str = field(default_factory=_new_command_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_interpretation(cls, text: str, interpretation: Interpretation) -> "Command":
        return cls(
            text=text,
            action=interpretation.action,
            device=interpretation.device,
            value=interpretation.value,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(timespec="milliseconds"),
            "action": self.action,
            "device": self.device,
            "value": self.value,
        }

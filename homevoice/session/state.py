"""
Session state container.

Owns the device registry and the command log together with the capture
flags. Registry and log are only ever replaced through `apply`/`append`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from homevoice.commands.log import CommandLog
from homevoice.devices.registry import DeviceRegistry


SAMPLE_COMMANDS = (
    "Turn on living room light",
    "Set temperature to 24",
    "Arm security system",
    "Turn off bedroom light",
)


class SessionPhase(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    LISTENING = "listening"
    ERROR = "error"


@dataclass
class SessionState:
    devices: DeviceRegistry = field(default_factory=DeviceRegistry)
    commands: CommandLog = field(default_factory=CommandLog)
    phase: SessionPhase = SessionPhase.IDLE
    listening: bool = False
    audio_level: float = 0.0
    error: Optional[str] = None
    transcript: str = ""
    supported: bool = True

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": self.phase.value,
            "listening": self.listening,
            "audio_level": self.audio_level,
            "error": self.error,
            "transcript": self.transcript,
            "supported": self.supported,
            "devices": self.devices.to_list(),
            "commands": self.commands.to_list(),
            "sample_commands": list(SAMPLE_COMMANDS),
        }

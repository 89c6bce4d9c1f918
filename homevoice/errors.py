"""Error taxonomy for voice sessions.

Everything here is caught at the session controller boundary and turned into
the single user-visible error message.
"""

from __future__ import annotations


class HomeVoiceError(Exception):
    """Base class for HomeVoice errors."""


class CaptureUnsupported(HomeVoiceError):
    """No speech engine is available in this runtime."""

    def __init__(self, message: str = "Speech recognition not supported in this runtime") -> None:
        super().__init__(message)


class PermissionDenied(HomeVoiceError):
    """Microphone access was refused (recoverable, start() may be retried)."""

    def __init__(self, message: str = "Microphone access denied") -> None:
        super().__init__(message)


class EngineError(HomeVoiceError):
    """The speech engine reported a mid-session error."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Speech recognition error: {code}")

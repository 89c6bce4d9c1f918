"""
Voice session lifecycle.
"""

from homevoice.session.controller import VoiceSessionController
from homevoice.session.engine import RecognitionEvent, RecognitionResult
from homevoice.session.state import SessionPhase, SessionState

__all__ = [
    "RecognitionEvent",
    "RecognitionResult",
    "SessionPhase",
    "SessionState",
    "VoiceSessionController",
]

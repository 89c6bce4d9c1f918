"""Environment-driven configuration.

Invalid values never fail startup; they fall back to the defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _truthy_env(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    v = os.environ.get(name)
    if v is None or v.strip() == "":
        return default
    return v.strip()


@dataclass(frozen=True, slots=True)
class RecognitionOptions:
    lang: str = "en-US"
    continuous: bool = True
    interim_results: bool = True


@dataclass(frozen=True, slots=True)
class SessionConfig:
    # Amplitude loop period; ~one display frame at 60 Hz.
    level_tick_ms: int = 16
    recognition: RecognitionOptions = RecognitionOptions()

    @property
    def level_tick_s(self) -> float:
        return max(1, self.level_tick_ms) / 1000.0

    @staticmethod
    def from_env() -> "SessionConfig":
        return SessionConfig(
            level_tick_ms=_env_int("HOMEVOICE_LEVEL_TICK_MS", 16),
            recognition=RecognitionOptions(
                lang=_env_str("HOMEVOICE_RECOGNITION_LANG", "en-US"),
                continuous=_truthy_env("HOMEVOICE_RECOGNITION_CONTINUOUS", "1"),
                interim_results=_truthy_env("HOMEVOICE_RECOGNITION_INTERIM", "1"),
            ),
        )


@dataclass(frozen=True, slots=True)
class AnalyserConfig:
    fft_size: int = 256
    min_db: float = -100.0
    max_db: float = -30.0
    smoothing: float = 0.8
    input_device: str | None = None

    def __post_init__(self) -> None:
        if self.fft_size < 32 or self.fft_size & (self.fft_size - 1):
            raise ValueError("fft_size must be a power of two >= 32")
        if self.max_db <= self.min_db:
            raise ValueError("max_db must be > min_db")
        if not (0.0 <= self.smoothing < 1.0):
            raise ValueError("smoothing must be in [0, 1)")

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    @staticmethod
    def from_env() -> "AnalyserConfig":
        device = os.environ.get("HOMEVOICE_INPUT_DEVICE")
        return AnalyserConfig(
            fft_size=_env_int("HOMEVOICE_FFT_SIZE", 256),
            min_db=_env_float("HOMEVOICE_MIN_DB", -100.0),
            max_db=_env_float("HOMEVOICE_MAX_DB", -30.0),
            smoothing=_env_float("HOMEVOICE_SMOOTHING", 0.8),
            input_device=device.strip() if device and device.strip() else None,
        )

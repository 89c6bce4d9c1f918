"""Byte frequency analysis.

Mirrors the behaviour of a browser AnalyserNode's byte frequency data:
Blackman-windowed FFT, exponential smoothing over time, magnitudes converted
to dB and mapped linearly from [min_db, max_db] onto 0..255.
"""

from __future__ import annotations

import numpy as np

from homevoice.config import AnalyserConfig


class SpectrumAnalyser:
    def __init__(self, config: AnalyserConfig | None = None) -> None:
        self._cfg = config or AnalyserConfig()
        self._window = np.blackman(self._cfg.fft_size).astype(np.float64)
        self._smoothed = np.zeros(self._cfg.bin_count, dtype=np.float64)

    @property
    def fft_size(self) -> int:
        return self._cfg.fft_size

    @property
    def bin_count(self) -> int:
        return self._cfg.bin_count

    def reset(self) -> None:
        self._smoothed[:] = 0.0

    def byte_frequency_data(self, frame: np.ndarray) -> np.ndarray:
        """Return `bin_count` uint8 magnitudes for a float PCM frame in [-1, 1].

        Frames shorter than `fft_size` are zero-padded at the front; longer
        frames use their newest `fft_size` samples.
        """

        n = self._cfg.fft_size
        x = np.asarray(frame, dtype=np.float64).reshape(-1)
        if x.size >= n:
            x = x[-n:]
        else:
            x = np.concatenate((np.zeros(n - x.size), x))

        spectrum = np.fft.rfft(x * self._window)[: self._cfg.bin_count]
        magnitude = np.abs(spectrum) / n

        tau = self._cfg.smoothing
        self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitude

        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(self._smoothed)
        db = np.where(np.isfinite(db), db, self._cfg.min_db)

        scale = 255.0 / (self._cfg.max_db - self._cfg.min_db)
        scaled = np.floor((db - self._cfg.min_db) * scale)
        return np.clip(scaled, 0, 255).astype(np.uint8)

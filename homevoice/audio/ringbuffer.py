"""Bounded sample buffer.

Keeps only the newest samples the analyser needs; when over capacity the
oldest samples are dropped.
"""

from __future__ import annotations

import threading

import numpy as np


class SampleRingBuffer:
    def __init__(self, *, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = capacity
        self._buf = np.zeros((0,), dtype=np.float32)
        # Written from the audio callback thread, read from the event loop.
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return int(self._buf.size)

    def clear(self) -> None:
        with self._lock:
            self._buf = np.zeros((0,), dtype=np.float32)

    def append(self, samples: np.ndarray) -> int:
        """Append mono float samples. Returns number of samples dropped (oldest)."""

        x = np.asarray(samples, dtype=np.float32).reshape(-1)
        if x.size == 0:
            return 0

        with self._lock:
            buf = np.concatenate((self._buf, x))
            overflow = int(buf.size - self._capacity)
            if overflow > 0:
                buf = buf[overflow:]
            self._buf = buf
        return max(overflow, 0)

    def window(self) -> np.ndarray:
        """Newest `capacity` samples, zero-padded at the front when short."""

        with self._lock:
            buf = self._buf.copy()
        if buf.size >= self._capacity:
            return buf
        return np.concatenate((np.zeros(self._capacity - buf.size, dtype=np.float32), buf))

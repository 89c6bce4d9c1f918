"""Local microphone capture via sounddevice.

`SoundDeviceMicrophone.request()` is the permission step: opening the input
stream either succeeds (access granted) or raises PermissionDenied.
"""

from __future__ import annotations

import asyncio
from typing import Any

import numpy as np

from homevoice.audio.ringbuffer import SampleRingBuffer
from homevoice.audio.spectrum import SpectrumAnalyser
from homevoice.config import AnalyserConfig
from homevoice.errors import PermissionDenied
from homevoice.hv_logging import get_logger

log = get_logger("HOMEVOICE.Audio")


def _select_input_device(spec: str | None) -> int | str | None:
    """Return a PortAudio device index, a name substring, or None for the default."""

    if spec is None or spec.strip() == "":
        return None
    try:
        return int(spec.strip())
    except ValueError:
        return spec.strip()


class SoundDeviceAnalyser:
    """Frequency analyser over a live sounddevice input stream."""

    def __init__(self, stream: Any, buffer: SampleRingBuffer, analyser: SpectrumAnalyser) -> None:
        self._stream = stream
        self._buffer = buffer
        self._analyser = analyser
        self._closed = False

    def byte_frequency_data(self) -> np.ndarray:
        return self._analyser.byte_frequency_data(self._buffer.window())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            log.warning("HOMEVOICE.Audio.CloseError", extra={"fields": {"error": repr(e)}})
        self._buffer.clear()


class SoundDeviceMicrophone:
    def __init__(self, config: AnalyserConfig | None = None) -> None:
        self._cfg = config or AnalyserConfig.from_env()

    async def request(self) -> SoundDeviceAnalyser:
        return await asyncio.to_thread(self._open)

    def _open(self) -> SoundDeviceAnalyser:
        try:
            import sounddevice as sd
        except Exception as e:
            # PortAudio missing behaves like a refused microphone.
            log.info("HOMEVOICE.Audio.Unavailable", extra={"fields": {"error": repr(e)}})
            raise PermissionDenied() from e

        buffer = SampleRingBuffer(capacity=self._cfg.fft_size)

        def cb(indata: np.ndarray, _frames: int, _time: Any, _status: Any) -> None:
            x = indata
            if x.ndim == 2:
                x = x[:, 0]
            buffer.append(x)

        device = _select_input_device(self._cfg.input_device)
        try:
            stream = sd.InputStream(
                device=device,
                channels=1,
                dtype="float32",
                blocksize=self._cfg.fft_size,
                callback=cb,
            )
            stream.start()
        except Exception as e:
            log.info(
                "HOMEVOICE.Audio.OpenFailed",
                extra={"fields": {"device": device, "error": repr(e)}},
            )
            raise PermissionDenied() from e

        log.info(
            "HOMEVOICE.Audio.Opened",
            extra={"fields": {"device": device, "fft_size": self._cfg.fft_size}},
        )
        return SoundDeviceAnalyser(stream, buffer, SpectrumAnalyser(self._cfg))

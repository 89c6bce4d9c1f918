from __future__ import annotations

import asyncio
import sys
import types
from typing import Any

import numpy as np
import pytest

from homevoice.audio.capture import SoundDeviceMicrophone
from homevoice.audio.level import normalized_level
from homevoice.audio.ringbuffer import SampleRingBuffer
from homevoice.audio.spectrum import SpectrumAnalyser
from homevoice.config import AnalyserConfig
from homevoice.errors import PermissionDenied


@pytest.mark.parametrize(
    ("sample", "expected"),
    [
        ([], 0.0),
        ([0, 0, 0], 0.0),
        ([64, 64, 64, 64], 0.5),
        ([0, 256], 1.0),
        ([255] * 16, 1.0),
    ],
)
def test_normalized_level(sample: list[int], expected: float) -> None:
    assert normalized_level(sample) == pytest.approx(expected)


def test_normalized_level_accepts_uint8_arrays() -> None:
    assert normalized_level(np.full(128, 32, dtype=np.uint8)) == pytest.approx(0.25)


def test_ringbuffer_keeps_newest_samples() -> None:
    buf = SampleRingBuffer(capacity=4)

    dropped = buf.append(np.arange(6, dtype=np.float32))

    assert dropped == 2
    assert len(buf) == 4
    np.testing.assert_array_equal(buf.window(), np.array([2, 3, 4, 5], dtype=np.float32))


def test_ringbuffer_window_is_zero_padded() -> None:
    buf = SampleRingBuffer(capacity=4)
    buf.append(np.array([1.0, 2.0], dtype=np.float32))

    np.testing.assert_array_equal(buf.window(), np.array([0, 0, 1, 2], dtype=np.float32))
    buf.clear()
    assert len(buf) == 0


def test_ringbuffer_rejects_bad_capacity() -> None:
    with pytest.raises(ValueError):
        SampleRingBuffer(capacity=0)


def test_spectrum_of_silence_is_zero() -> None:
    analyser = SpectrumAnalyser(AnalyserConfig(fft_size=256))

    data = analyser.byte_frequency_data(np.zeros(256, dtype=np.float32))

    assert data.dtype == np.uint8
    assert data.shape == (128,)
    assert int(data.max()) == 0


def test_spectrum_peaks_at_tone_bin() -> None:
    analyser = SpectrumAnalyser(AnalyserConfig(fft_size=256, smoothing=0.0, max_db=0.0))
    n = np.arange(256)
    tone = np.sin(2 * np.pi * 16 * n / 256)

    data = analyser.byte_frequency_data(tone)

    assert int(np.argmax(data)) == 16
    assert data[16] > data[15] > data[14]
    assert data[16] > data[17] > data[18]


def test_spectrum_smoothing_ramps_up() -> None:
    analyser = SpectrumAnalyser(AnalyserConfig(fft_size=256, smoothing=0.8, max_db=0.0))
    n = np.arange(256)
    tone = 0.5 * np.sin(2 * np.pi * 32 * n / 256)

    first = int(analyser.byte_frequency_data(tone)[32])
    second = int(analyser.byte_frequency_data(tone)[32])

    assert second > first
    analyser.reset()
    assert int(analyser.byte_frequency_data(tone)[32]) == first


def test_analyser_config_validation() -> None:
    with pytest.raises(ValueError):
        AnalyserConfig(fft_size=100)
    with pytest.raises(ValueError):
        AnalyserConfig(min_db=-30.0, max_db=-40.0)
    with pytest.raises(ValueError):
        AnalyserConfig(smoothing=1.0)


class _FakeStream:
    instances: list["_FakeStream"] = []

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.started = False
        self.stopped = False
        self.closed = False
        _FakeStream.instances.append(self)

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def close(self) -> None:
        self.closed = True


def _fake_sounddevice(stream_cls: Any) -> types.ModuleType:
    mod = types.ModuleType("sounddevice")
    mod.InputStream = stream_cls  # type: ignore[attr-defined]
    return mod


def test_microphone_open_and_close(monkeypatch: pytest.MonkeyPatch) -> None:
    _FakeStream.instances.clear()
    monkeypatch.setitem(sys.modules, "sounddevice", _fake_sounddevice(_FakeStream))

    mic = SoundDeviceMicrophone(AnalyserConfig(fft_size=64, max_db=0.0, input_device="2"))
    analyser = asyncio.run(mic.request())

    stream = _FakeStream.instances[-1]
    assert stream.started
    assert stream.kwargs["device"] == 2
    assert stream.kwargs["channels"] == 1

    # Feed audio through the stream callback.
    n = np.arange(64)
    block = np.sin(2 * np.pi * 8 * n / 64).astype(np.float32).reshape(-1, 1)
    stream.kwargs["callback"](block, 64, None, None)

    data = analyser.byte_frequency_data()
    assert len(data) == 32
    assert int(np.argmax(data)) == 8

    analyser.close()
    analyser.close()
    assert stream.stopped and stream.closed


def test_microphone_open_failure_is_permission_denied(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Refused:
        def __init__(self, **_kwargs: Any) -> None:
            raise RuntimeError("Error querying device -1")

    monkeypatch.setitem(sys.modules, "sounddevice", _fake_sounddevice(_Refused))

    with pytest.raises(PermissionDenied):
        asyncio.run(SoundDeviceMicrophone(AnalyserConfig()).request())

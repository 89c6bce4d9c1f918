"""Console speech engine: typed lines stand in for final transcripts."""

from __future__ import annotations

import asyncio
import sys
from typing import Optional, TextIO

from homevoice.config import RecognitionOptions
from homevoice.session.controller import VoiceSessionController
from homevoice.session.engine import RecognitionEvent, RecognitionResult

STOP_WORD = "/stop"


class NullAnalyser:
    def byte_frequency_data(self) -> list[int]:
        return []

    def close(self) -> None:
        pass


class NullMicrophone:
    """Grants access immediately; the level stays at 0."""

    async def request(self) -> NullAnalyser:
        return NullAnalyser()


class ConsoleSpeechEngine:
    """Reads transcripts line by line on a worker thread.

    stop() cancels the read loop, but a readline already blocked in the
    worker thread keeps waiting until one more line or EOF arrives.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdin
        self._controller: Optional[VoiceSessionController] = None
        self._task: Optional[asyncio.Task[None]] = None
        self.options: Optional[RecognitionOptions] = None

    def bind(self, controller: VoiceSessionController) -> None:
        self._controller = controller

    def start(self, options: RecognitionOptions) -> None:
        self.options = options
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._read_loop())

    def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def _read_loop(self) -> None:
        assert self._controller is not None
        while True:
            line = await asyncio.to_thread(self._stream.readline)
            if not line:
                # End of input is the engine's natural end.
                self._task = None
                self._controller.handle_end()
                return
            text = line.strip()
            if not text:
                continue
            if text == STOP_WORD:
                self._task = None
                self._controller.stop()
                return
            self._controller.handle_result(RecognitionEvent([RecognitionResult(text, True)]))

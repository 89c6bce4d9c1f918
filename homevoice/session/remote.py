"""WebSocket-backed collaborators.

The speech engine and the microphone live in the client. These adapters turn
controller calls into outbound control frames and client frames back into
resolved permission requests and spectrum samples.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Any, Callable, Optional, Sequence

from homevoice.config import RecognitionOptions
from homevoice.errors import PermissionDenied

Send = Callable[[dict[str, Any]], None]


class RemoteSpeechEngine:
    def __init__(self, send: Send) -> None:
        self._send = send

    def start(self, options: RecognitionOptions) -> None:
        self._send({"type": "recognition.start", **asdict(options)})

    def stop(self) -> None:
        self._send({"type": "recognition.stop"})


class RemoteAnalyser:
    """Returns the newest spectrum frame the client pushed."""

    def __init__(self) -> None:
        self._latest: list[int] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def update(self, data: Sequence[Any]) -> None:
        if self._closed:
            return
        self._latest = [min(max(int(v), 0), 255) for v in data]

    def byte_frequency_data(self) -> list[int]:
        return list(self._latest)

    def close(self) -> None:
        self._closed = True
        self._latest = []


class RemoteMicrophone:
    def __init__(self, send: Send) -> None:
        self._send = send
        self._pending: Optional[asyncio.Future[bool]] = None
        self.analyser: Optional[RemoteAnalyser] = None

    async def request(self) -> RemoteAnalyser:
        loop = asyncio.get_running_loop()
        self._pending = loop.create_future()
        self._send({"type": "mic.request"})
        try:
            granted = await self._pending
        finally:
            self._pending = None
        if not granted:
            raise PermissionDenied()
        self.analyser = RemoteAnalyser()
        return self.analyser

    def resolve(self, granted: bool) -> bool:
        """Answer the pending request. Returns False when nothing was pending."""

        fut = self._pending
        if fut is None or fut.done():
            return False
        fut.set_result(bool(granted))
        return True

    def push_spectrum(self, data: Sequence[Any]) -> None:
        if self.analyser is not None:
            self.analyser.update(data)

    def cancel(self) -> None:
        fut = self._pending
        if fut is not None and not fut.done():
            fut.cancel()

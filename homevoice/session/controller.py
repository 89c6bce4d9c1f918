"""
Voice session controller.

Drives the capture lifecycle:

    IDLE -> REQUESTING -> LISTENING -> IDLE      (stop / engine end / engine error)
    IDLE -> REQUESTING -> ERROR                  (microphone refused)

ERROR is idle-equivalent: start() may be retried from it. Engine callbacks are
re-expressed as plain method calls (`handle_result`, `handle_error`,
`handle_end`) so any backend, or a test, can drive the controller.

Everything runs on one asyncio event loop. Registry and log updates happen
synchronously inside `handle_result`, so two transcripts never interleave.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from homevoice.audio.level import normalized_level
from homevoice.commands.interpreter import interpret
from homevoice.commands.models import Command
from homevoice.config import SessionConfig
from homevoice.errors import CaptureUnsupported, EngineError, PermissionDenied
from homevoice.hv_logging import get_logger
from homevoice.session.engine import (
    FrequencyAnalyser,
    MicrophoneAccess,
    RecognitionEvent,
    SpeechEngine,
)
from homevoice.session.state import SessionPhase, SessionState

log = get_logger("HOMEVOICE.Session")

StateListener = Callable[[SessionState], None]


class VoiceSessionController:
    def __init__(
        self,
        engine: Optional[SpeechEngine],
        microphone: MicrophoneAccess,
        *,
        state: Optional[SessionState] = None,
        config: Optional[SessionConfig] = None,
        session_id: str = "",
    ) -> None:
        self._engine = engine
        self._microphone = microphone
        self._state = state or SessionState()
        self._cfg = config or SessionConfig.from_env()
        self._session_id = session_id
        self._listeners: list[StateListener] = []
        self._analyser: Optional[FrequencyAnalyser] = None
        self._level_task: Optional[asyncio.Task[None]] = None
        self._closed = False

        if engine is None:
            self._state.supported = False
            self._state.error = str(CaptureUnsupported())
            log.info("HOMEVOICE.Session.Unsupported", extra={"fields": self._fields()})

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    async def start(self) -> None:
        if not self._state.supported or self._closed:
            return
        if self._state.phase not in (SessionPhase.IDLE, SessionPhase.ERROR):
            log.info(
                "HOMEVOICE.Session.StartIgnored",
                extra={"fields": self._fields(phase=self._state.phase.value)},
            )
            return

        self._set_phase(SessionPhase.REQUESTING)
        self._notify()

        # No timeout: the request may stay pending until the user answers.
        try:
            analyser = await self._microphone.request()
        except PermissionDenied as e:
            self._fail(str(e))
            return
        except Exception as e:
            log.error("HOMEVOICE.Session.MicrophoneError", extra={"fields": self._fields(error=repr(e))})
            self._fail(str(PermissionDenied()))
            return

        if self._closed or self._state.phase is not SessionPhase.REQUESTING:
            # Torn down while the request was pending.
            self._close_analyser(analyser)
            return

        assert self._engine is not None
        try:
            self._engine.start(self._cfg.recognition)
        except Exception as e:
            log.error("HOMEVOICE.Session.EngineStartFailed", extra={"fields": self._fields(error=repr(e))})
            self._close_analyser(analyser)
            self._fail(str(EngineError("start-failed")))
            return

        self._analyser = analyser
        self._state.listening = True
        self._state.error = None
        self._set_phase(SessionPhase.LISTENING)
        self._notify()
        self._level_task = asyncio.create_task(self._level_loop(analyser))

    def stop(self) -> None:
        if self._state.phase is not SessionPhase.LISTENING:
            return

        self._cancel_level_loop()
        self._stop_engine()
        self._release_analyser()
        self._to_idle()
        log.info("HOMEVOICE.Session.Stopped", extra={"fields": self._fields()})
        self._notify()

    def handle_result(self, event: RecognitionEvent) -> Optional[Command]:
        if self._state.phase is not SessionPhase.LISTENING:
            log.info("HOMEVOICE.Session.ResultIgnored", extra={"fields": self._fields(phase=self._state.phase.value)})
            return None

        text = event.final_transcript()
        if not text:
            return None
        return self.process_transcript(text)

    def handle_error(self, code: str) -> None:
        err = EngineError(code)
        log.info("HOMEVOICE.Session.EngineError", extra={"fields": self._fields(code=code)})
        self._cancel_level_loop()
        self._release_analyser()
        self._state.error = str(err)
        self._to_idle()
        self._notify()

    def handle_end(self) -> None:
        self._cancel_level_loop()
        self._release_analyser()
        if self._state.phase is SessionPhase.LISTENING:
            log.info("HOMEVOICE.Session.Ended", extra={"fields": self._fields()})
            self._to_idle()
        self._notify()

    def process_transcript(self, text: str) -> Command:
        """Interpret a final transcript, apply it and record it."""

        state = self._state
        interpretation = interpret(text, state.devices.ids)
        state.devices = state.devices.apply(interpretation.mutations)
        command = Command.from_interpretation(text, interpretation)
        state.commands = state.commands.append(command)
        state.transcript = text

        log.info(
            "HOMEVOICE.Command.Interpreted",
            extra={
                "fields": self._fields(
                    command_id=command.id,
                    intent=interpretation.intent.value,
                    action=command.action,
                    device=command.device,
                    value=command.value,
                    mutations=len(interpretation.mutations),
                    text_len=len(text),
                )
            },
        )
        self._notify()
        return command

    def close(self) -> None:
        """Tear down unconditionally. Safe to call repeatedly."""

        self._closed = True
        self._cancel_level_loop()
        if self._state.phase is SessionPhase.LISTENING:
            self._stop_engine()
        self._release_analyser()
        self._to_idle()

    async def _level_loop(self, analyser: FrequencyAnalyser) -> None:
        tick_s = self._cfg.level_tick_s
        while self._state.phase is SessionPhase.LISTENING and self._analyser is analyser:
            try:
                sample = analyser.byte_frequency_data()
            except Exception as e:
                log.warning("HOMEVOICE.Audio.SampleError", extra={"fields": self._fields(error=repr(e))})
                return
            self._publish_level(normalized_level(sample))
            await asyncio.sleep(tick_s)

    def _stop_engine(self) -> None:
        if self._engine is None:
            return
        try:
            self._engine.stop()
        except Exception as e:
            log.warning("HOMEVOICE.Session.EngineStopError", extra={"fields": self._fields(error=repr(e))})

    def _publish_level(self, level: float) -> None:
        if self._state.phase is not SessionPhase.LISTENING:
            return
        if level == self._state.audio_level:
            return
        self._state.audio_level = level
        self._notify()

    def _cancel_level_loop(self) -> None:
        task = self._level_task
        self._level_task = None
        if task is not None and not task.done():
            task.cancel()

    def _release_analyser(self) -> None:
        analyser = self._analyser
        self._analyser = None
        if analyser is not None:
            self._close_analyser(analyser)

    def _close_analyser(self, analyser: FrequencyAnalyser) -> None:
        try:
            analyser.close()
        except Exception as e:
            log.warning("HOMEVOICE.Audio.CloseError", extra={"fields": self._fields(error=repr(e))})

    def _fail(self, message: str) -> None:
        self._state.error = message
        self._state.listening = False
        self._state.audio_level = 0.0
        self._set_phase(SessionPhase.ERROR)
        self._notify()

    def _to_idle(self) -> None:
        self._state.listening = False
        self._state.audio_level = 0.0
        self._set_phase(SessionPhase.IDLE)

    def _set_phase(self, phase: SessionPhase) -> None:
        previous = self._state.phase
        self._state.phase = phase
        if previous is not phase:
            log.info(
                "HOMEVOICE.Session.Transition",
                extra={"fields": self._fields(src=previous.value, dst=phase.value)},
            )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                log.error("HOMEVOICE.Session.ListenerError", extra={"fields": self._fields(error=repr(e))})

    def _fields(self, **extra: object) -> dict[str, object]:
        return {"session_id": self._session_id, **extra}

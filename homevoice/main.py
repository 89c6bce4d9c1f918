from __future__ import annotations

import asyncio
import contextlib
import json
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, HTTPException, WebSocket

from homevoice.commands.interpreter import RULES, interpret
from homevoice.config import SessionConfig
from homevoice.devices.registry import DeviceRegistry
from homevoice.hv_logging import get_logger
from homevoice.session.controller import VoiceSessionController
from homevoice.session.engine import RecognitionEvent, RecognitionResult
from homevoice.session.remote import RemoteMicrophone, RemoteSpeechEngine

log = get_logger("HOMEVOICE")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session_config = SessionConfig.from_env()
    cfg = app.state.session_config
    log.info(
        "HOMEVOICE.Server.Started",
        extra={
            "fields": {
                "level_tick_ms": cfg.level_tick_ms,
                "lang": cfg.recognition.lang,
                "intents": len(RULES),
            }
        },
    )
    yield
    log.info("HOMEVOICE.Server.Stopped")


app = FastAPI(title="HomeVoice", lifespan=lifespan)


@app.get("/healthz")
async def healthz() -> dict[str, Any]:
    return {
        "status": "ok",
        "devices": len(DeviceRegistry()),
        "intents": len(RULES),
    }


@app.get("/api/devices/defaults")
async def get_default_devices() -> dict[str, Any]:
    return {"devices": DeviceRegistry().to_list()}


@app.post("/api/commands/interpret")
async def interpret_text(request: dict[str, Any]) -> dict[str, Any]:
    """
    Interpret text against the default devices without touching any session.

    Request body:
        {
            "text": str     # Required: transcript to interpret
        }

    Response:
        {
            "text": str,
            "intent": str,
            "action": str,
            "device": str,
            "value": str,
            "mutations": [...],
            "devices": [...]    # default devices with the mutations applied
        }
    """
    text = request.get("text")
    if not text or not isinstance(text, str):
        raise HTTPException(status_code=400, detail="Missing or invalid 'text' parameter")

    registry = DeviceRegistry()
    interpretation = interpret(text, registry.ids)
    preview = registry.apply(interpretation.mutations)

    log.info(
        "HOMEVOICE.Command.Preview",
        extra={"fields": {"intent": interpretation.intent.value, "text_len": len(text), "source": "api"}},
    )
    return {"text": text, **interpretation.to_dict(), "devices": preview.to_list()}


@app.websocket("/ws/session")
async def ws_session(ws: WebSocket) -> None:
    session_id = uuid4().hex
    await ws.accept()
    log.info("HOMEVOICE.Session.Connected", extra={"fields": {"session_id": session_id}})

    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    send = outbox.put_nowait

    config = getattr(app.state, "session_config", None) or SessionConfig.from_env()
    microphone = RemoteMicrophone(send)
    controller = VoiceSessionController(
        RemoteSpeechEngine(send),
        microphone,
        config=config,
        session_id=session_id,
    )
    controller.subscribe(lambda state: send({"type": "state", **state.snapshot()}))
    send({"type": "state", **controller.state.snapshot()})

    sender_task = asyncio.create_task(_send_loop(ws, outbox))
    start_task: asyncio.Task[None] | None = None

    try:
        while True:
            message = await ws.receive()
            if message.get("type") == "websocket.disconnect":
                log.info("HOMEVOICE.Session.Disconnected", extra={"fields": {"session_id": session_id}})
                return

            text = message.get("text")
            if text is None:
                continue
            payload = _safe_json(text)
            if payload is None:
                continue

            msg_type = payload.get("type")
            if msg_type == "start":
                # Runs concurrently: the permission reply arrives on this same loop.
                if start_task is None or start_task.done():
                    start_task = asyncio.create_task(controller.start())
                continue

            if msg_type == "stop":
                controller.stop()
                continue

            if msg_type == "mic":
                microphone.resolve(bool(payload.get("granted")))
                continue

            if msg_type == "spectrum":
                data = _byte_list(payload.get("data"))
                if data is not None:
                    microphone.push_spectrum(data)
                continue

            if msg_type == "result":
                event = _parse_result(payload)
                if event is not None:
                    controller.handle_result(event)
                continue

            if msg_type == "error":
                controller.handle_error(str(payload.get("error") or "unknown"))
                continue

            if msg_type == "end":
                controller.handle_end()
                continue

    finally:
        microphone.cancel()
        controller.close()
        if start_task is not None:
            start_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await start_task
        sender_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender_task


async def _send_loop(ws: WebSocket, outbox: asyncio.Queue[dict[str, Any]]) -> None:
    while True:
        msg = await outbox.get()
        try:
            await ws.send_json(msg)
        except Exception as e:
            log.info("HOMEVOICE.Session.SendFailed", extra={"fields": {"error": repr(e)}})
            return


def _safe_json(text: str) -> dict[str, Any] | None:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(obj, dict):
        return None
    return obj


def _byte_list(data: Any) -> list[int] | None:
    if not isinstance(data, list):
        return None
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in data):
        return None
    return [int(v) for v in data]


def _parse_result(payload: dict[str, Any]) -> RecognitionEvent | None:
    raw = payload.get("results")
    if not isinstance(raw, list):
        return None

    results: list[RecognitionResult] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("transcript"), str):
            return None
        results.append(RecognitionResult(item["transcript"], bool(item.get("is_final"))))

    result_index = payload.get("result_index", 0)
    if not isinstance(result_index, int) or result_index < 0:
        result_index = 0
    return RecognitionEvent(results, result_index)

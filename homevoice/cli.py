from __future__ import annotations

import argparse
import asyncio
import os

import uvicorn

from homevoice.audio.capture import SoundDeviceMicrophone
from homevoice.config import AnalyserConfig, SessionConfig
from homevoice.session.console import STOP_WORD, ConsoleSpeechEngine, NullMicrophone
from homevoice.session.controller import VoiceSessionController
from homevoice.session.state import SessionPhase, SessionState


def _serve(args: argparse.Namespace) -> int:
    # Note: keep import string so uvicorn can manage lifespan correctly.
    uvicorn.run(
        "homevoice.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        workers=args.workers,
    )
    return 0


def _print_state(state: SessionState) -> None:
    latest = state.commands.latest
    if latest is not None:
        detail = f" -> {latest.device}" if latest.device else ""
        if latest.value:
            detail += f" ({latest.value})"
        print(f"[{latest.action}]{detail}", flush=True)
    for device in state.devices:
        print(f"  {device.name:<18} {device.status_text}", flush=True)
    if state.error:
        print(f"  error: {state.error}", flush=True)


async def _console(args: argparse.Namespace) -> int:
    engine = ConsoleSpeechEngine()
    microphone = SoundDeviceMicrophone(AnalyserConfig.from_env()) if args.mic else NullMicrophone()
    controller = VoiceSessionController(engine, microphone, config=SessionConfig.from_env(), session_id="console")
    engine.bind(controller)

    done = asyncio.Event()
    last_command: str | None = None

    def on_change(state: SessionState) -> None:
        nonlocal last_command
        latest = state.commands.latest
        if latest is not None and latest.id != last_command:
            last_command = latest.id
            _print_state(state)
        if state.phase is SessionPhase.IDLE:
            done.set()

    controller.subscribe(on_change)
    print(f"Type commands (e.g. 'turn on the living room light'); '{STOP_WORD}' or EOF to quit.", flush=True)
    await controller.start()
    if controller.phase is SessionPhase.LISTENING:
        await done.wait()
    controller.close()
    if controller.state.error:
        print(f"error: {controller.state.error}", flush=True)
        return 1
    return 0


CONSOLE_DESCRIPTION = (
    "Drive a session with typed transcripts. A blocked stdin read cannot be "
    f"interrupted: after the session stops another line (or EOF) is read before exit; use '{STOP_WORD}' to quit at once."
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="homevoice", description="Voice-controlled home devices")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HomeVoice FastAPI server")
    serve.add_argument("--host", default=os.environ.get("HOMEVOICE_HOST", "0.0.0.0"))
    serve.add_argument("--port", type=int, default=int(os.environ.get("HOMEVOICE_PORT", "8000")))
    serve.add_argument("--workers", type=int, default=int(os.environ.get("HOMEVOICE_WORKERS", "1")))
    serve.add_argument("--log-level", default=os.environ.get("HOMEVOICE_LOG_LEVEL", "info").lower())

    console = sub.add_parser("console", help="Drive a session with typed transcripts", description=CONSOLE_DESCRIPTION)
    console.add_argument("--mic", action="store_true", help="Open the local microphone for the audio level")

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    if args.command == "console":
        raise SystemExit(asyncio.run(_console(args)))
    if args.command is None:
        args = parser.parse_args(["serve"])
    raise SystemExit(_serve(args))

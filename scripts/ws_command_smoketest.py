from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

import websockets


async def _recv_until(ws: Any, msg_type: str, *, timeout: float) -> dict[str, Any]:
    while True:
        raw = await asyncio.wait_for(ws.recv(), timeout=timeout)
        msg = json.loads(raw)
        if msg.get("type") == msg_type:
            return msg


async def main() -> int:
    p = argparse.ArgumentParser(description="HomeVoice WebSocket command smoke test")
    p.add_argument("url", help="ws://host:port/ws/session")
    p.add_argument(
        "--text",
        action="append",
        default=None,
        help="Final transcript to send (repeatable)",
    )
    p.add_argument("--deny-mic", action="store_true", help="Refuse the microphone request")
    p.add_argument("--timeout", type=float, default=5.0)
    args = p.parse_args()

    texts = args.text or ["turn on the living room light", "set temperature to 24 degrees"]

    async with websockets.connect(args.url, max_size=None) as ws:
        await _recv_until(ws, "state", timeout=args.timeout)
        await ws.send(json.dumps({"type": "start"}))
        await _recv_until(ws, "mic.request", timeout=args.timeout)
        await ws.send(json.dumps({"type": "mic", "granted": not args.deny_mic}))

        if args.deny_mic:
            state = await _recv_until(ws, "state", timeout=args.timeout)
            print(f"state={state['state']} error={state['error']}")
            return 0

        await _recv_until(ws, "recognition.start", timeout=args.timeout)
        # A quiet spectrum frame keeps the level meter moving.
        await ws.send(json.dumps({"type": "spectrum", "data": [64] * 128}))

        for text in texts:
            await ws.send(
                json.dumps({"type": "result", "results": [{"transcript": text, "is_final": True}]})
            )
            while True:
                state = await _recv_until(ws, "state", timeout=args.timeout)
                commands = state.get("commands") or []
                if commands and commands[0]["text"] == text:
                    break
            cmd = commands[0]
            print(f"{text!r} -> {cmd['action']} {cmd['device']} {cmd['value']}".rstrip())

        await ws.send(json.dumps({"type": "stop"}))
        await _recv_until(ws, "recognition.stop", timeout=args.timeout)
        for device in state["devices"]:
            print(f"  {device['name']:<18} {device['status_text']}")

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))

from __future__ import annotations

import pytest

from homevoice.commands.interpreter import interpret
from homevoice.commands.log import MAX_COMMANDS, CommandLog
from homevoice.commands.models import Command


def _cmd(n: int) -> Command:
    return Command(text=f"power on {n}", action="Power On", device="Main Power")


def test_append_prepends() -> None:
    log = CommandLog()
    first, second = _cmd(1), _cmd(2)

    log = log.append(first).append(second)

    assert list(log) == [second, first]
    assert log.latest is second


def test_append_returns_new_log() -> None:
    log = CommandLog()
    updated = log.append(_cmd(1))

    assert len(log) == 0
    assert len(updated) == 1


@pytest.mark.parametrize("n", [1, 5, 10, 11, 25])
def test_length_is_bounded(n: int) -> None:
    log = CommandLog()
    last = None
    for i in range(n):
        last = _cmd(i)
        log = log.append(last)

    assert len(log) == min(n, MAX_COMMANDS)
    assert log[0] is last


def test_eleven_commands_evict_the_oldest() -> None:
    commands = [_cmd(i) for i in range(11)]
    log = CommandLog()
    for c in commands:
        log = log.append(c)

    assert list(log) == list(reversed(commands[1:]))
    assert commands[0] not in list(log)


def test_command_ids_are_distinct() -> None:
    ids = {_cmd(i).id for i in range(50)}
    assert len(ids) == 50


def test_command_from_interpretation_keeps_original_text() -> None:
    text = "Set Temperature to 24 Degrees"
    command = Command.from_interpretation(text, interpret(text))

    assert command.text == text
    assert command.action == "Set Temperature"
    assert command.device == "Thermostat"
    assert command.value == "24°C"


def test_unknown_command_has_empty_device() -> None:
    command = Command.from_interpretation("play some music", interpret("play some music"))
    data = command.to_dict()

    assert data["action"] == "Unknown"
    assert data["device"] == ""
    assert data["value"] == ""
    assert data["timestamp"].endswith("+00:00")


def test_invalid_bound() -> None:
    with pytest.raises(ValueError):
        CommandLog(max_entries=0)

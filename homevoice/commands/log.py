"""Bounded command history.

Newest first. Appending prepends and then drops whatever falls beyond the
cap, so at capacity the oldest entry is the one evicted.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Tuple

from homevoice.commands.models import Command

MAX_COMMANDS = 10


class CommandLog:
    __slots__ = ("_commands", "_max_entries")

    def __init__(self, commands: Iterable[Command] = (), *, max_entries: int = MAX_COMMANDS) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._max_entries = max_entries
        self._commands: Tuple[Command, ...] = tuple(commands)[:max_entries]

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __getitem__(self, index: int) -> Command:
        return self._commands[index]

    def __repr__(self) -> str:
        return f"CommandLog({list(self._commands)!r})"

    @property
    def latest(self) -> Command | None:
        return self._commands[0] if self._commands else None

    def append(self, command: Command) -> "CommandLog":
        """Return a new log with `command` in front."""

        return CommandLog((command, *self._commands), max_entries=self._max_entries)

    def to_list(self) -> list[dict]:
        return [c.to_dict() for c in self._commands]

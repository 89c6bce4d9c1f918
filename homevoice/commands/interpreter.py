"""
Command interpreter.

Turns a transcript into an Interpretation using an ordered table of
substring rules. The first rule whose predicate matches wins; later rules are
never consulted. Matching is plain substring containment on a lower-cased
copy of the text, so phrasing and word order are not checked.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from homevoice.commands.models import UNKNOWN_ACTION, Intent, Interpretation
from homevoice.devices.models import Mutation
from homevoice.devices.registry import (
    BEDROOM_LIGHT,
    LIVING_ROOM_LIGHT,
    MAIN_POWER,
    SECURITY_SYSTEM,
    THERMOSTAT,
)

# First run of ASCII digits anywhere in the text, not anchored to "temperature".
_DIGITS_RE = re.compile(r"(\d+)", re.ASCII)

# Checked in this order; "living room" wins when both rooms are mentioned.
_LIGHT_TARGETS: Tuple[Tuple[str, str, str], ...] = (
    ("living room", LIVING_ROOM_LIGHT, "Living Room Light"),
    ("bedroom", BEDROOM_LIGHT, "Bedroom Light"),
)

Predicate = Callable[[str], bool]
# (device name, value label, mutations)
Effect = Callable[[str], Tuple[str, str, Tuple[Mutation, ...]]]


def _contains_all(*needles: str) -> Predicate:
    return lambda text: all(n in text for n in needles)


def _contains_any(*needles: str) -> Predicate:
    return lambda text: any(n in text for n in needles)


def _light(status: bool) -> Effect:
    def effect(text: str) -> Tuple[str, str, Tuple[Mutation, ...]]:
        for needle, device_id, name in _LIGHT_TARGETS:
            if needle in text:
                return name, "", (Mutation(device_id, status=status),)
        # Recognized but no room named: no device, no mutation.
        return "", "", ()

    return effect


def _switch(device_id: str, name: str, status: bool) -> Effect:
    return lambda _text: (name, "", (Mutation(device_id, status=status),))


def _temperature(text: str) -> Tuple[str, str, Tuple[Mutation, ...]]:
    match = _DIGITS_RE.search(text)
    if match is None:
        return "Thermostat", "", ()
    digits = match.group(1)
    return "Thermostat", f"{digits}°C", (Mutation(THERMOSTAT, value=int(digits)),)


@dataclass(frozen=True, slots=True)
class IntentRule:
    intent: Intent
    action: str
    matches: Predicate
    effect: Effect


RULES: Tuple[IntentRule, ...] = (
    IntentRule(Intent.LIGHT_ON, "Turn On", _contains_all("turn on", "light"), _light(True)),
    IntentRule(Intent.LIGHT_OFF, "Turn Off", _contains_all("turn off", "light"), _light(False)),
    IntentRule(Intent.SET_TEMPERATURE, "Set Temperature", _contains_any("set temperature"), _temperature),
    # "disarm security" contains "arm security", so it lands here.
    IntentRule(
        Intent.ARM_SECURITY,
        "Arm Security",
        _contains_any("arm security", "enable security"),
        _switch(SECURITY_SYSTEM, "Security System", True),
    ),
    IntentRule(
        Intent.DISARM_SECURITY,
        "Disarm Security",
        _contains_any("disarm security", "disable security"),
        _switch(SECURITY_SYSTEM, "Security System", False),
    ),
    IntentRule(
        Intent.POWER_ON,
        "Power On",
        _contains_any("power on", "turn on power"),
        _switch(MAIN_POWER, "Main Power", True),
    ),
    IntentRule(
        Intent.POWER_OFF,
        "Power Off",
        _contains_any("power off", "turn off power"),
        _switch(MAIN_POWER, "Main Power", False),
    ),
)

UNKNOWN = Interpretation(intent=Intent.UNKNOWN, action=UNKNOWN_ACTION)


def match_rule(text: str, rules: Iterable[IntentRule] = RULES) -> Optional[IntentRule]:
    """Return the first rule matching `text` (case-insensitive), if any."""

    lowered = text.lower()
    return next((rule for rule in rules if rule.matches(lowered)), None)


def interpret(
    text: str,
    device_ids: Optional[Iterable[str]] = None,
    *,
    rules: Iterable[IntentRule] = RULES,
) -> Interpretation:
    """Interpret a transcript.

    Always returns exactly one Interpretation and never raises for
    unrecognized text. When `device_ids` is given, a mutation aimed at a
    device outside that set is dropped while the labels are kept.
    """

    lowered = text.lower()
    rule = match_rule(lowered, rules)
    if rule is None:
        return UNKNOWN

    device, value, mutations = rule.effect(lowered)
    if device_ids is not None:
        known = set(device_ids)
        mutations = tuple(m for m in mutations if m.device_id in known)

    return Interpretation(
        intent=rule.intent,
        action=rule.action,
        device=device,
        value=value,
        mutations=mutations,
    )

"""
Tests for the command interpreter.

Covers rule priority, case handling, digit extraction and the Unknown
fallback.
"""

from __future__ import annotations

import pytest

from homevoice.commands.interpreter import RULES, interpret, match_rule
from homevoice.commands.models import Intent
from homevoice.devices.models import Mutation


def test_living_room_light_on() -> None:
    result = interpret("Turn on the living room light")

    assert result.intent is Intent.LIGHT_ON
    assert result.action == "Turn On"
    assert result.device == "Living Room Light"
    assert result.value == ""
    assert result.mutations == (Mutation("1", status=True),)


def test_bedroom_light_off() -> None:
    result = interpret("please TURN OFF the Bedroom light")

    assert result.intent is Intent.LIGHT_OFF
    assert result.device == "Bedroom Light"
    assert result.mutations == (Mutation("2", status=False),)


def test_light_without_room_is_recognized_but_unresolved() -> None:
    result = interpret("turn on the kitchen light")

    assert result.action == "Turn On"
    assert result.device == ""
    assert result.mutations == ()


def test_living_room_wins_when_both_rooms_named() -> None:
    result = interpret("turn on the bedroom light and the living room light")

    assert result.device == "Living Room Light"
    assert result.mutations == (Mutation("1", status=True),)


def test_set_temperature_with_digits() -> None:
    result = interpret("set temperature to 24 degrees")

    assert result.intent is Intent.SET_TEMPERATURE
    assert result.action == "Set Temperature"
    assert result.device == "Thermostat"
    assert result.value == "24°C"
    assert result.mutations == (Mutation("3", value=24),)


def test_set_temperature_uses_first_digit_run_anywhere() -> None:
    result = interpret("in 5 minutes set temperature to 21")

    assert result.value == "5°C"
    assert result.mutations == (Mutation("3", value=5),)


def test_set_temperature_without_digits() -> None:
    result = interpret("set temperature to twenty")

    assert result.action == "Set Temperature"
    assert result.device == "Thermostat"
    assert result.value == ""
    assert result.mutations == ()


def test_set_temperature_ignores_non_ascii_digits() -> None:
    result = interpret("set temperature to ٢٤")

    assert result.mutations == ()


def test_disable_security_disarms() -> None:
    result = interpret("disable security")

    assert result.intent is Intent.DISARM_SECURITY
    assert result.action == "Disarm Security"
    assert result.device == "Security System"
    assert result.mutations == (Mutation("4", status=False),)


def test_disarm_security_phrase_hits_arm_rule_first() -> None:
    # "disarm security" contains "arm security"; the earlier rule wins.
    result = interpret("disarm security")

    assert result.intent is Intent.ARM_SECURITY
    assert result.mutations == (Mutation("4", status=True),)


@pytest.mark.parametrize(
    ("text", "intent", "status"),
    [
        ("enable security", Intent.ARM_SECURITY, True),
        ("arm security system", Intent.ARM_SECURITY, True),
        ("power on", Intent.POWER_ON, True),
        ("turn on power", Intent.POWER_ON, True),
        ("power off everything", Intent.POWER_OFF, False),
        ("turn off power", Intent.POWER_OFF, False),
    ],
)
def test_switch_phrasings(text: str, intent: Intent, status: bool) -> None:
    result = interpret(text)

    assert result.intent is intent
    assert len(result.mutations) == 1
    assert result.mutations[0].status is status


def test_light_rule_beats_power_rule() -> None:
    # Contains both "turn on" + "light" and "turn on power".
    result = interpret("turn on power to the living room light")

    assert result.intent is Intent.LIGHT_ON


def test_temperature_rule_beats_security_rule() -> None:
    result = interpret("set temperature to 19 and arm security")

    assert result.intent is Intent.SET_TEMPERATURE


def test_unknown() -> None:
    result = interpret("play some music")

    assert result.intent is Intent.UNKNOWN
    assert result.action == "Unknown"
    assert result.device == ""
    assert result.value == ""
    assert result.mutations == ()


def test_empty_text_is_unknown() -> None:
    assert interpret("").intent is Intent.UNKNOWN


def test_interpret_is_deterministic() -> None:
    texts = ["turn off living room light", "set temperature 30", "hello", "power off"]
    first = [interpret(t) for t in texts]
    second = [interpret(t) for t in texts]
    assert first == second


def test_unknown_device_ids_drop_mutation_but_keep_labels() -> None:
    result = interpret("turn on living room light", device_ids={"2", "3"})

    assert result.device == "Living Room Light"
    assert result.mutations == ()


def test_rules_are_in_priority_order() -> None:
    assert [r.intent for r in RULES] == [
        Intent.LIGHT_ON,
        Intent.LIGHT_OFF,
        Intent.SET_TEMPERATURE,
        Intent.ARM_SECURITY,
        Intent.DISARM_SECURITY,
        Intent.POWER_ON,
        Intent.POWER_OFF,
    ]


def test_match_rule_returns_none_for_unmatched_text() -> None:
    assert match_rule("what time is it") is None
    assert match_rule("POWER ON").intent is Intent.POWER_ON

"""
Command interpretation and history.
"""

from homevoice.commands.interpreter import RULES, IntentRule, interpret
from homevoice.commands.log import MAX_COMMANDS, CommandLog
from homevoice.commands.models import UNKNOWN_ACTION, Command, Intent, Interpretation

__all__ = [
    "MAX_COMMANDS",
    "RULES",
    "UNKNOWN_ACTION",
    "Command",
    "CommandLog",
    "Intent",
    "IntentRule",
    "Interpretation",
    "interpret",
]

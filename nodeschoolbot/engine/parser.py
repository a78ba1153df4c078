"""Command parsing for comment bodies.

A comment addresses the bot with lines such as::

    @nodeschoolbot create-repo nyc
    @nodeschoolbot add-team-user nyc @jane @joe

Each mention yields one ``Command`` built from the rest of its line. In a
comment that mentions the bot, a barrel roll request anywhere overrides
everything else.
"""

import re

import structlog

from nodeschoolbot.enums import OperationKind
from nodeschoolbot.models.domain import Command

log = structlog.get_logger(__name__)

BARREL_ROLL_PATTERN = re.compile(r"barrel[-\s]?roll", re.IGNORECASE)


def mention_pattern(handle: str) -> re.Pattern[str]:
    """Compile the mention pattern for a bot handle.

    The handle must be followed by whitespace or the end of the line, so a
    longer login such as ``@nodeschoolbotfan`` or ``@nodeschoolbot,`` is not a
    mention. Group 1 is the remainder of the line.
    """
    handle = handle.lstrip("@")
    return re.compile(rf"@{re.escape(handle)}(?=[^\S\n]|$)[^\S\n]*([^\n]*)", re.MULTILINE)


def parse_commands(body: str | None, handle: str) -> list[Command] | None:
    """Extract the commands addressed to the bot from a comment.

    Args:
        body: Comment text, possibly absent
        handle: Bot login, with or without the leading ``@``

    Returns:
        None when there is no text at all, an empty list when the text holds
        no mention, ``[barrel-roll]`` when a mentioning comment asks for a
        barrel roll, otherwise one Command per mention in textual order.
    """
    if not body:
        return None

    commands = []
    for match in mention_pattern(handle).finditer(body):
        tokens = match.group(1).split()
        name = tokens[0] if tokens else ""
        commands.append(Command(name=name, args=tuple(tokens[1:])))

    if commands and BARREL_ROLL_PATTERN.search(body):
        log.debug("barrel_roll_requested")
        return [Command(name=OperationKind.BARREL_ROLL.value)]

    return commands


def strip_at_sign(value: str) -> str:
    """Drop one leading ``@`` from a user or team name."""
    return value[1:] if value.startswith("@") else value

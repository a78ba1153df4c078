"""Core domain models for the bot.

Key Models:
    - InboundEvent: Issue comment delivered by the webhook
    - Command: One command parsed from a mention line
    - Operation: A command resolved to an operation kind
    - ExecutionOutcome: Settled result of one operation
    - TeamInvite: Users added to a team by ``add-team-user``
    - Notice: Side-channel message for the reply

Example:
    >>> from nodeschoolbot.models import Command
    >>> Command(name="create-repo", args=("nyc",))
"""

from nodeschoolbot.models.domain import (
    Command,
    ExecutionOutcome,
    InboundEvent,
    Notice,
    Operation,
    TeamInvite,
)

__all__ = [
    "Command",
    "ExecutionOutcome",
    "InboundEvent",
    "Notice",
    "Operation",
    "TeamInvite",
]

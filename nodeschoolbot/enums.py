"""Enumerations for nodeschoolbot commands and operations."""

from enum import Enum


class OperationKind(str, Enum):
    """Kinds of operations a parsed command can resolve to.

    The value of each member is the command name typed after the bot mention.
    ``help`` has no operation kind: it is answered by the static help text
    whenever nothing else produced output.
    """

    CREATE_REPO = "create-repo"
    ADD_USER = "add-user"
    CREATE_TEAM = "create-team"
    ADD_TEAM_USER = "add-team-user"
    VERSION = "version"
    BARREL_ROLL = "barrel-roll"

    def __str__(self) -> str:
        return self.value


class MembershipState(str, Enum):
    """State field of a team membership record; only active members are trusted."""

    ACTIVE = "active"

    def __str__(self) -> str:
        return self.value

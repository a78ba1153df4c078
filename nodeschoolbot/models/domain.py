"""
Domain models for the bot.

This module contains the data classes that flow through one webhook delivery:
the inbound event, the commands parsed out of its comment, the operations the
commands resolve to, and the per-operation outcomes the executor reports.
All of them are frozen; a delivery never mutates its own inputs.

Example:
    Building an event from a webhook payload::

        event = InboundEvent.from_payload(
            {
                "sender": {"login": "jane"},
                "comment": {"body": "@nodeschoolbot create-repo nyc"},
                "repository": {"full_name": "nodeschool/organizers"},
                "issue": {"number": 42},
            }
        )
"""

from dataclasses import dataclass, field
from typing import Any

from nodeschoolbot.enums import OperationKind


@dataclass(frozen=True)
class InboundEvent:
    """An issue comment notification delivered by the webhook.

    Carries the sender, the comment text and the coordinates needed to post
    a reply on the same issue.
    """

    sender: str
    """Login of the user who wrote the comment (empty if absent)."""

    comment_body: str | None
    """Raw comment text. None when the payload carried no comment."""

    repository: str
    """Full name of the origin repository, ``owner/repo``."""

    issue_number: int
    """Number of the issue or pull request the comment belongs to."""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "InboundEvent":
        """Build an event from a decoded webhook JSON body.

        Missing sections are tolerated: they produce empty values so the
        parser can decide there is nothing to do.
        """
        sender = payload.get("sender") or {}
        comment = payload.get("comment") or {}
        repository = payload.get("repository") or {}
        issue = payload.get("issue") or {}

        return cls(
            sender=sender.get("login") or "",
            comment_body=comment.get("body"),
            repository=repository.get("full_name") or "",
            issue_number=int(issue.get("number") or 0),
        )

    @property
    def can_reply(self) -> bool:
        """Whether the event carries enough of an origin to post a comment."""
        return bool(self.repository) and self.issue_number > 0


@dataclass(frozen=True)
class Command:
    """One command parsed from a mention line.

    Example:
        ``@nodeschoolbot add-team-user berlin @jane @joe`` parses to
        ``Command(name="add-team-user", args=("berlin", "@jane", "@joe"))``.
    """

    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Operation:
    """A command resolved to a concrete operation kind.

    ``target`` is the repository, user or team the operation acts on, with any
    leading ``@`` already stripped. ``members`` is only used by team-user
    additions and lists the users to add to ``target``.
    """

    kind: OperationKind
    target: str = ""
    members: tuple[str, ...] = ()


@dataclass(frozen=True)
class TeamInvite:
    """Users invited to one team by a team-user addition."""

    team: str
    users: tuple[str, ...]


@dataclass(frozen=True)
class Notice:
    """A human-visible side-channel message to include in the reply."""

    text: str


@dataclass(frozen=True)
class ExecutionOutcome:
    """Result of one dispatched operation.

    Either ``success`` is True and ``value`` holds the typed payload for the
    operation kind (repository name, user login, team name, ``TeamInvite``,
    version string or ``Notice``), or ``success`` is False and ``error`` holds
    the exception that settled it.
    """

    operation: Operation
    success: bool
    value: Any = None
    error: BaseException | None = field(default=None, compare=False)

    @classmethod
    def succeeded(cls, operation: Operation, value: Any = None) -> "ExecutionOutcome":
        return cls(operation=operation, success=True, value=value)

    @classmethod
    def failed(cls, operation: Operation, error: BaseException) -> "ExecutionOutcome":
        return cls(operation=operation, success=False, error=error)

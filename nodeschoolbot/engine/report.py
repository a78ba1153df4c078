"""
Response synthesis.

Settled outcomes are folded into an immutable ``AggregatedReport``; the reply
text is then rendered from typed clauses by ``ReplyBuilder`` as a pure final
step, so summary wording can be tested without any I/O.

Example:
    >>> report = AggregatedReport.from_outcomes(outcomes)
    >>> text = render_reply(report, ReplyBuilder("nodeschool", "chapter-organizers"))
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from nodeschoolbot.enums import OperationKind
from nodeschoolbot.models.domain import ExecutionOutcome, Notice, TeamInvite

HELP_TEMPLATE = (
    "Here is what I can do for you:\n"
    "\n"
    "* `help` - shows this help\n"
    "* `create-repo {{name}}` - creates a nodeschool repo\n"
    "* `add-user {{username}}` - adds a user to the `{team}` team and the org\n"
    "* `create-team {{team}}` - creates a new team\n"
    "* `add-team-user {{team}} {{username...}}` - add one or more users to a specific team\n"
    "* `version` - shows the version I am running\n"
)

ERROR_TEMPLATE = "I have encountered an error doing this :(\n\n```\n{detail}\n```\n"

REJECTION_TEMPLATE = (
    "Sorry @{login}. You are not allowed to do that if you are not a member of the `{team}` team"
)


@dataclass(frozen=True)
class AggregatedReport:
    """Everything the executed operations of one delivery produced.

    Categories keep dispatch order. ``error`` is the first failure in
    dispatch order, if any operation failed.
    """

    repositories: tuple[str, ...] = ()
    added_users: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()
    team_invites: tuple[TeamInvite, ...] = ()
    versions: tuple[str, ...] = ()
    notices: tuple[Notice, ...] = ()
    easter_egg: bool = False
    error: BaseException | None = field(default=None, compare=False)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def is_empty(self) -> bool:
        """True when no category produced anything to report."""
        return not (
            self.repositories or self.added_users or self.teams or self.team_invites or self.versions or self.notices
        )

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[ExecutionOutcome]) -> "AggregatedReport":
        """Fold settled outcomes into a report."""
        repositories: list[str] = []
        added_users: list[str] = []
        teams: list[str] = []
        team_invites: list[TeamInvite] = []
        versions: list[str] = []
        notices: list[Notice] = []
        easter_egg = False
        error: BaseException | None = None

        for outcome in outcomes:
            if not outcome.success:
                if error is None:
                    error = outcome.error
                continue

            kind = outcome.operation.kind
            value = outcome.value

            if isinstance(value, Notice):
                notices.append(value)
            elif kind == OperationKind.CREATE_REPO:
                repositories.append(value)
            elif kind == OperationKind.ADD_USER:
                added_users.append(value)
            elif kind == OperationKind.CREATE_TEAM:
                teams.append(value)
            elif kind == OperationKind.ADD_TEAM_USER:
                team_invites.append(value)
            elif kind == OperationKind.VERSION:
                versions.append(value)
            elif kind == OperationKind.BARREL_ROLL:
                easter_egg = True

        return cls(
            repositories=tuple(repositories),
            added_users=tuple(added_users),
            teams=tuple(teams),
            team_invites=tuple(team_invites),
            versions=tuple(versions),
            notices=tuple(notices),
            easter_egg=easter_egg,
            error=error,
        )


class ClauseCategory(str, Enum):
    REPOSITORIES = "repositories"
    USERS = "users"
    TEAMS = "teams"
    INVITES = "invites"
    VERSION = "version"


@dataclass(frozen=True)
class Clause:
    """One summary clause: a category, its rendered items and an optional subject."""

    category: ClauseCategory
    items: tuple[str, ...]
    subject: str = ""

    @property
    def count(self) -> int:
        return len(self.items)


class ReplyBuilder:
    """Accumulates clauses and renders them into one summary sentence."""

    def __init__(self, organization: str, team_name: str, web_url: str = "https://github.com") -> None:
        self.organization = organization
        self.team_name = team_name
        self.web_url = web_url.rstrip("/")
        self.clauses: list[Clause] = []
        self.notices: list[str] = []

    def add(self, category: ClauseCategory, items: Iterable[str], subject: str = "") -> "ReplyBuilder":
        items = tuple(items)
        if items:
            self.clauses.append(Clause(category=category, items=items, subject=subject))
        return self

    def add_notice(self, text: str) -> "ReplyBuilder":
        self.notices.append(text)
        return self

    def extend(self, report: AggregatedReport) -> "ReplyBuilder":
        """Add the clauses for every non-empty category of a report."""
        self.add(ClauseCategory.REPOSITORIES, report.repositories)
        self.add(ClauseCategory.USERS, report.added_users)
        self.add(ClauseCategory.TEAMS, report.teams)
        for invite in report.team_invites:
            self.add(ClauseCategory.INVITES, invite.users, subject=invite.team)
        # Repeated `version` commands all report the same thing
        self.add(ClauseCategory.VERSION, report.versions[:1])
        for notice in report.notices:
            self.add_notice(notice.text)
        return self

    def render_clause(self, clause: Clause) -> str:
        single = clause.count == 1

        if clause.category == ClauseCategory.REPOSITORIES:
            links = ", ".join(f"[{name}]({self.web_url}/{self.organization}/{name})" for name in clause.items)
            if single:
                return f"I have created a new repo called {links}"
            return f"I have created {clause.count} new repos called {links}"

        if clause.category == ClauseCategory.USERS:
            users = ", ".join(f"@{user}" for user in clause.items)
            return f"I have added {users} to the `{self.team_name}` team"

        if clause.category == ClauseCategory.TEAMS:
            teams = ", ".join(f"@{self.organization}/{team}" for team in clause.items)
            return f"I have created the {teams} team{'' if single else 's'}"

        if clause.category == ClauseCategory.INVITES:
            users = ", ".join(f"@{user}" for user in clause.items)
            return f"I have invited {users} to the `{clause.subject}` team"

        return f"I am running version `{clause.items[0]}`"

    def render(self) -> str:
        """Render the summary sentence followed by notice paragraphs.

        Returns:
            The reply text, or an empty string when nothing was added.
        """
        paragraphs = []
        if self.clauses:
            paragraphs.append(" and ".join(self.render_clause(clause) for clause in self.clauses) + ".")
        paragraphs.extend(self.notices)
        return "\n\n".join(paragraphs)


def render_reply(report: AggregatedReport, builder: ReplyBuilder) -> str | None:
    """Choose and render the reply for a report.

    Returns:
        The error template when an operation failed, the summary when
        anything was produced, None when only the barrel roll ran (it already
        posted its own comment), and the help text otherwise.
    """
    if report.failed:
        return render_error(report.error)

    summary = builder.extend(report).render()
    if summary:
        return summary
    if report.easter_egg:
        return None
    return render_help(builder.team_name)


def render_help(team_name: str) -> str:
    return HELP_TEMPLATE.format(team=team_name)


def render_error(error: BaseException | None) -> str:
    """Apology comment embedding the error detail."""
    if error is None:
        detail = "Unknown error"
    else:
        detail = f"{type(error).__name__}: {error}"
    return ERROR_TEMPLATE.format(detail=detail)


def render_rejection(login: str, team_name: str) -> str:
    return REJECTION_TEMPLATE.format(login=login, team=team_name)

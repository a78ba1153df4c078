"""
Concurrent execution of parsed commands.

Commands are first resolved to operations by name and arity. The operations
of one delivery are then dispatched together on the event loop and the
executor waits for every one of them to settle before returning, whether it
succeeded or failed. A failure never cancels its siblings: an external
mutation that was already sent is always observed to completion.

Execution Flow:
    1. ``resolve_operations`` drops unknown commands and commands with too
       few arguments
    2. ``ActionExecutor.execute`` dispatches all operations with ``wait_all``
    3. ``add-team-user`` fans out once more, one membership write per user
    4. Each settled operation becomes an ``ExecutionOutcome``, in dispatch order

Example:
    >>> operations = resolve_operations(commands)
    >>> outcomes = await ActionExecutor(provider, "nodeschool", 1660004).execute(event, operations)
    >>> failures = [o for o in outcomes if not o.success]
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog

from nodeschoolbot import __version__
from nodeschoolbot.engine.parser import strip_at_sign
from nodeschoolbot.enums import OperationKind
from nodeschoolbot.models.domain import (
    Command,
    ExecutionOutcome,
    InboundEvent,
    Notice,
    Operation,
    TeamInvite,
)
from nodeschoolbot.providers.base import OrganizationProvider

log = structlog.get_logger(__name__)

BARREL_ROLL_IMAGE = "![barrel-roll](https://i.chzbgr.com/maxW500/5816682496/h83DFAE3F/)"

# Minimum number of arguments per operation kind
REQUIRED_ARGS: dict[OperationKind, int] = {
    OperationKind.CREATE_REPO: 1,
    OperationKind.ADD_USER: 1,
    OperationKind.CREATE_TEAM: 1,
    OperationKind.ADD_TEAM_USER: 2,
    OperationKind.VERSION: 0,
    OperationKind.BARREL_ROLL: 0,
}


def resolve_operation(command: Command) -> Operation | None:
    """Map a command to an operation, or None if it is not actionable.

    Unknown names (``help`` and the empty name included) and commands with
    too few arguments resolve to None.
    """
    try:
        kind = OperationKind(command.name)
    except ValueError:
        return None

    if len(command.args) < REQUIRED_ARGS[kind]:
        log.debug("command_skipped", name=command.name, args=len(command.args))
        return None

    if kind == OperationKind.CREATE_REPO:
        return Operation(kind=kind, target=command.args[0])
    if kind in (OperationKind.ADD_USER, OperationKind.CREATE_TEAM):
        return Operation(kind=kind, target=strip_at_sign(command.args[0]))
    if kind == OperationKind.ADD_TEAM_USER:
        return Operation(
            kind=kind,
            target=strip_at_sign(command.args[0]),
            members=tuple(strip_at_sign(user) for user in command.args[1:]),
        )
    return Operation(kind=kind)


def resolve_operations(commands: Iterable[Command]) -> list[Operation]:
    """Resolve commands in order, silently dropping the non-actionable ones."""
    return [operation for operation in map(resolve_operation, commands) if operation is not None]


async def wait_all(awaitables: Iterable[Awaitable[Any]]) -> list[Any]:
    """Await every awaitable concurrently and return results in input order.

    Failures are returned in place of results instead of being raised, so
    the call only returns once everything has settled.
    """
    return await asyncio.gather(*awaitables, return_exceptions=True)


def raise_first_failure(results: Iterable[Any]) -> None:
    """Raise the first exception found in a ``wait_all`` result list."""
    for result in results:
        if isinstance(result, BaseException):
            raise result


class ActionExecutor:
    """Dispatches resolved operations against the organization API."""

    def __init__(
        self,
        provider: OrganizationProvider,
        organization: str,
        team_id: int,
        version: str = __version__,
    ) -> None:
        """Initialize the executor.

        Args:
            provider: Outbound API
            organization: Organization repositories and teams are created in
            team_id: Team ``add-user`` adds to and new repositories are granted to
            version: Version reported by the ``version`` command
        """
        self.provider = provider
        self.organization = organization
        self.team_id = team_id
        self.version = version
        self._handlers: dict[OperationKind, Callable[[InboundEvent, Operation], Awaitable[Any]]] = {
            OperationKind.CREATE_REPO: self._create_repo,
            OperationKind.ADD_USER: self._add_user,
            OperationKind.CREATE_TEAM: self._create_team,
            OperationKind.ADD_TEAM_USER: self._add_team_user,
            OperationKind.VERSION: self._version,
            OperationKind.BARREL_ROLL: self._barrel_roll,
        }

    async def execute(self, event: InboundEvent, operations: list[Operation]) -> list[ExecutionOutcome]:
        """Run all operations concurrently and wait for every one to settle.

        Args:
            event: Delivery the operations came from (needed to comment back)
            operations: Operations in dispatch order

        Returns:
            One outcome per operation, in the same order.
        """
        log.info("fan_out_started", operations=[str(op.kind) for op in operations])

        results = await wait_all(self._handlers[op.kind](event, op) for op in operations)

        outcomes = []
        for operation, result in zip(operations, results):
            if isinstance(result, Exception):
                log.error("operation_failed", kind=str(operation.kind), target=operation.target, error=str(result))
                outcomes.append(ExecutionOutcome.failed(operation, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                log.info("operation_succeeded", kind=str(operation.kind), target=operation.target)
                outcomes.append(ExecutionOutcome.succeeded(operation, result))

        log.info(
            "fan_out_settled",
            total=len(outcomes),
            failed=sum(1 for outcome in outcomes if not outcome.success),
        )
        return outcomes

    async def _create_repo(self, event: InboundEvent, operation: Operation) -> str:
        name = operation.target
        await self.provider.create_repository(
            name,
            description=f"Repo for organizing the {name} nodeschools",
            homepage=f"https://{self.organization}.github.io/{name}",
            team_id=self.team_id,
        )
        return name

    async def _add_user(self, event: InboundEvent, operation: Operation) -> str:
        await self.provider.add_team_membership(self.team_id, operation.target)
        return operation.target

    async def _create_team(self, event: InboundEvent, operation: Operation) -> str:
        name = operation.target
        await self.provider.create_team(
            name,
            description=f"Team for organizing the {name} nodeschools",
            repo_names=[f"{self.organization}/{name}"],
        )
        return name

    async def _add_team_user(self, event: InboundEvent, operation: Operation) -> TeamInvite | Notice:
        """Add every listed user to a team, one membership write per user.

        The writes run concurrently; all of them settle before the first
        failure, if any, is raised.
        """
        team = await self.provider.find_team(operation.target)
        if team is None:
            log.info("team_not_found", team=operation.target)
            return Notice(f"I cannot find the team `{operation.target}`")

        results = await wait_all(self.provider.add_team_membership(team["id"], user) for user in operation.members)
        raise_first_failure(results)

        return TeamInvite(team=operation.target, users=operation.members)

    async def _version(self, event: InboundEvent, operation: Operation) -> str:
        return self.version

    async def _barrel_roll(self, event: InboundEvent, operation: Operation) -> None:
        await self.provider.create_comment(event.repository, event.issue_number, BARREL_ROLL_IMAGE)

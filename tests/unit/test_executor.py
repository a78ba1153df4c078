"""Tests for nodeschoolbot/engine/executor.py."""

import asyncio

import pytest

from nodeschoolbot.engine.executor import (
    BARREL_ROLL_IMAGE,
    ActionExecutor,
    raise_first_failure,
    resolve_operation,
    resolve_operations,
    wait_all,
)
from nodeschoolbot.enums import OperationKind
from nodeschoolbot.exceptions import ExternalServiceError
from nodeschoolbot.models.domain import Command, Notice, Operation, TeamInvite
from tests.conftest import FakeOrganizationProvider, make_event


@pytest.fixture
def executor(provider: FakeOrganizationProvider) -> ActionExecutor:
    return ActionExecutor(provider, organization="nodeschool", team_id=1660004, version="9.9.9")


class TestResolveOperations:
    def test_create_repo_keeps_name(self):
        assert resolve_operation(Command("create-repo", ("nyc",))) == Operation(
            kind=OperationKind.CREATE_REPO, target="nyc"
        )

    def test_add_user_strips_at_sign(self):
        assert resolve_operation(Command("add-user", ("@jane",))) == Operation(
            kind=OperationKind.ADD_USER, target="jane"
        )

    def test_create_team_strips_at_sign(self):
        assert resolve_operation(Command("create-team", ("@berlin",))).target == "berlin"

    def test_add_team_user_single_and_bulk(self):
        single = resolve_operation(Command("add-team-user", ("@berlin", "@jane")))
        bulk = resolve_operation(Command("add-team-user", ("berlin", "@jane", "joe", "@ann")))

        assert single == Operation(kind=OperationKind.ADD_TEAM_USER, target="berlin", members=("jane",))
        assert bulk.members == ("jane", "joe", "ann")

    @pytest.mark.parametrize(
        "command",
        [
            Command("create-repo"),
            Command("add-user"),
            Command("create-team"),
            Command("add-team-user", ("berlin",)),
        ],
    )
    def test_insufficient_args_are_skipped(self, command):
        """Should drop commands missing required arguments."""
        assert resolve_operation(command) is None

    @pytest.mark.parametrize("name", ["help", "", "delete-repo", "CREATE-REPO"])
    def test_unrecognized_names_are_skipped(self, name):
        assert resolve_operation(Command(name, ("x",))) is None

    def test_version_and_barrel_roll_take_no_args(self):
        assert resolve_operation(Command("version")) == Operation(kind=OperationKind.VERSION)
        assert resolve_operation(Command("barrel-roll")) == Operation(kind=OperationKind.BARREL_ROLL)

    def test_order_is_preserved(self):
        commands = [
            Command("add-user", ("jane",)),
            Command("help"),
            Command("create-repo", ("nyc",)),
            Command("create-repo"),
            Command("version"),
        ]

        kinds = [op.kind for op in resolve_operations(commands)]

        assert kinds == [OperationKind.ADD_USER, OperationKind.CREATE_REPO, OperationKind.VERSION]


class TestWaitAll:
    @pytest.mark.asyncio
    async def test_failures_do_not_abandon_siblings(self):
        """Should let slow siblings finish even when an early one fails."""
        finished = []

        async def slow(value):
            await asyncio.sleep(0.02)
            finished.append(value)
            return value

        async def fail():
            raise ValueError("boom")

        results = await wait_all([fail(), slow(1), slow(2)])

        assert isinstance(results[0], ValueError)
        assert results[1:] == [1, 2]
        assert sorted(finished) == [1, 2]

    def test_raise_first_failure(self):
        first = ValueError("first")
        second = KeyError("second")

        with pytest.raises(ValueError, match="first"):
            raise_first_failure([1, first, 2, second])

    def test_raise_first_failure_without_failures(self):
        raise_first_failure([1, None, "ok"])


class TestActionExecutor:
    @pytest.mark.asyncio
    async def test_create_repo(self, executor, provider):
        op = Operation(kind=OperationKind.CREATE_REPO, target="nyc")

        outcomes = await executor.execute(make_event("x"), [op])

        assert provider.calls == [("create_repository", "nyc")]
        assert outcomes[0].success is True
        assert outcomes[0].value == "nyc"

    @pytest.mark.asyncio
    async def test_add_user_targets_fixed_team(self, executor, provider):
        op = Operation(kind=OperationKind.ADD_USER, target="jane")

        outcomes = await executor.execute(make_event("x"), [op])

        assert provider.calls == [("add_team_membership", (1660004, "jane"))]
        assert outcomes[0].value == "jane"

    @pytest.mark.asyncio
    async def test_create_team(self, executor, provider):
        outcomes = await executor.execute(make_event("x"), [Operation(kind=OperationKind.CREATE_TEAM, target="lima")])

        assert provider.calls == [("create_team", "lima")]
        assert outcomes[0].value == "lima"

    @pytest.mark.asyncio
    async def test_bulk_team_user_addition_fans_out(self, provider):
        """Should issue one write per user, concurrently, and await all of them."""
        provider.delay = 0.01
        executor = ActionExecutor(provider, organization="nodeschool", team_id=1660004)
        users = ("u1", "u2", "u3", "u4")
        op = Operation(kind=OperationKind.ADD_TEAM_USER, target="berlin", members=users)

        outcomes = await executor.execute(make_event("x"), [op])

        writes = [call[1] for call in provider.completed if call[0] == "add_team_membership"]
        assert sorted(writes) == [(11, user) for user in users]
        assert provider.max_in_flight == len(users)
        assert provider.in_flight == 0
        assert outcomes[0].value == TeamInvite(team="berlin", users=users)

    @pytest.mark.asyncio
    async def test_unknown_team_yields_notice(self, executor, provider):
        op = Operation(kind=OperationKind.ADD_TEAM_USER, target="atlantis", members=("jane",))

        outcomes = await executor.execute(make_event("x"), [op])

        assert outcomes[0].success is True
        assert outcomes[0].value == Notice("I cannot find the team `atlantis`")
        assert provider.mutations == []

    @pytest.mark.asyncio
    async def test_bulk_failure_waits_for_every_user(self, provider):
        """Should attempt every user and fail the operation after all settle."""
        provider.delay = 0.01
        provider.failures[("add_team_membership", "u1")] = 422
        executor = ActionExecutor(provider, organization="nodeschool", team_id=1660004)
        op = Operation(kind=OperationKind.ADD_TEAM_USER, target="berlin", members=("u1", "u2", "u3"))

        outcomes = await executor.execute(make_event("x"), [op])

        assert outcomes[0].success is False
        assert isinstance(outcomes[0].error, ExternalServiceError)
        assert outcomes[0].error.status_code == 422
        completed_users = [call[1][1] for call in provider.completed if call[0] == "add_team_membership"]
        assert sorted(completed_users) == ["u2", "u3"]

    @pytest.mark.asyncio
    async def test_operations_run_concurrently(self, provider):
        provider.delay = 0.01
        executor = ActionExecutor(provider, organization="nodeschool", team_id=1660004)
        ops = [
            Operation(kind=OperationKind.CREATE_REPO, target="nyc"),
            Operation(kind=OperationKind.ADD_USER, target="jane"),
            Operation(kind=OperationKind.CREATE_TEAM, target="nyc"),
        ]

        await executor.execute(make_event("x"), ops)

        assert provider.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_siblings(self, provider):
        """Should record the failure and still complete the other operation."""
        provider.delay = 0.01
        provider.failures[("create_repository", "nyc")] = 500
        executor = ActionExecutor(provider, organization="nodeschool", team_id=1660004)
        ops = [
            Operation(kind=OperationKind.CREATE_REPO, target="nyc"),
            Operation(kind=OperationKind.ADD_USER, target="jane"),
        ]

        outcomes = await executor.execute(make_event("x"), ops)

        assert [o.success for o in outcomes] == [False, True]
        assert outcomes[0].error.status_code == 500
        assert ("add_team_membership", (1660004, "jane")) in provider.completed

    @pytest.mark.asyncio
    async def test_version_makes_no_call(self, executor, provider):
        outcomes = await executor.execute(make_event("x"), [Operation(kind=OperationKind.VERSION)])

        assert outcomes[0].value == "9.9.9"
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_barrel_roll_posts_image(self, executor, provider):
        event = make_event("do a barrel roll")

        outcomes = await executor.execute(event, [Operation(kind=OperationKind.BARREL_ROLL)])

        assert outcomes[0].success is True
        assert provider.comments == [("nodeschool/organizers", 42, BARREL_ROLL_IMAGE)]

    @pytest.mark.asyncio
    async def test_no_operations(self, executor, provider):
        assert await executor.execute(make_event("x"), []) == []
        assert provider.calls == []

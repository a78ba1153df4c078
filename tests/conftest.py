"""Pytest configuration and shared fixtures."""

import asyncio
import json
from typing import Any

import pytest

from nodeschoolbot.config.settings import BotSettings
from nodeschoolbot.engine.dispatcher import CommandDispatcher
from nodeschoolbot.engine.signature import compute_signature
from nodeschoolbot.exceptions import ExternalServiceError
from nodeschoolbot.models.domain import InboundEvent
from nodeschoolbot.providers.base import OrganizationProvider

TEST_SECRET = "test-webhook-secret"


class FakeOrganizationProvider(OrganizationProvider):
    """In-memory organization API that records every call.

    ``failures`` maps ``(method_name, key)`` to the status code the call
    should fail with; the key is the username, repository or team name.
    ``delay`` makes every call yield to the event loop for that long, so
    concurrent calls overlap.
    """

    def __init__(
        self,
        memberships: dict[str, str] | None = None,
        teams: list[dict[str, Any]] | None = None,
        failures: dict[tuple[str, str], int] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.memberships = memberships or {}
        self.teams = teams or []
        self.failures = failures or {}
        self.delay = delay
        self.calls: list[tuple[str, Any]] = []
        self.comments: list[tuple[str, int, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.completed: list[tuple[str, Any]] = []

    async def _call(self, method: str, key: str, record: Any) -> None:
        self.calls.append((method, record))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            status = self.failures.get((method, key))
            if status is not None:
                raise ExternalServiceError(f"Bad status: {status}", status_code=status)
            self.completed.append((method, record))
        finally:
            self.in_flight -= 1

    @property
    def mutations(self) -> list[tuple[str, Any]]:
        """Calls that change state on the platform."""
        return [call for call in self.calls if call[0] not in ("get_team_membership", "list_teams")]

    async def get_team_membership(self, team_id: int, username: str) -> dict[str, Any]:
        await self._call("get_team_membership", username, (team_id, username))
        if username not in self.memberships:
            raise ExternalServiceError("Bad status: 404", status_code=404)
        return {"state": self.memberships[username], "role": "member"}

    async def add_team_membership(self, team_id: int, username: str, role: str = "member") -> dict[str, Any]:
        await self._call("add_team_membership", username, (team_id, username))
        return {"state": "pending", "role": role}

    async def create_repository(
        self,
        name: str,
        *,
        description: str,
        homepage: str,
        team_id: int | None = None,
    ) -> dict[str, Any]:
        await self._call("create_repository", name, name)
        return {"name": name, "description": description, "homepage": homepage}

    async def create_team(
        self,
        name: str,
        *,
        description: str,
        repo_names: list[str] | None = None,
        privacy: str = "closed",
    ) -> dict[str, Any]:
        await self._call("create_team", name, name)
        return {"name": name, "slug": name}

    async def list_teams(self) -> list[dict[str, Any]]:
        await self._call("list_teams", "", None)
        return list(self.teams)

    async def create_comment(self, repository: str, issue_number: int, body: str) -> dict[str, Any]:
        await self._call("create_comment", repository, (repository, issue_number))
        self.comments.append((repository, issue_number, body))
        return {"id": len(self.comments), "body": body}


@pytest.fixture
def settings() -> BotSettings:
    """Settings for the nodeschool organization with a known secret."""
    return BotSettings(
        token="test-token",
        secret=TEST_SECRET,
        verify=True,
        bot_handle="nodeschoolbot",
        organization="nodeschool",
        team_id=1660004,
        team_name="chapter-organizers",
    )


@pytest.fixture
def provider() -> FakeOrganizationProvider:
    """Fake API where `organizer` is an active chapter organizer."""
    return FakeOrganizationProvider(
        memberships={"organizer": "active", "invitee": "pending"},
        teams=[
            {"id": 11, "slug": "berlin", "name": "berlin"},
            {"id": 12, "slug": "nyc", "name": "nyc"},
        ],
    )


@pytest.fixture
def dispatcher(settings: BotSettings, provider: FakeOrganizationProvider) -> CommandDispatcher:
    return CommandDispatcher(settings, provider)


def make_payload(body: str | None, sender: str = "organizer", number: int = 42) -> dict[str, Any]:
    """Webhook payload for a comment on nodeschool/organizers."""
    payload: dict[str, Any] = {
        "action": "created",
        "sender": {"login": sender},
        "repository": {"full_name": "nodeschool/organizers"},
        "issue": {"number": number},
    }
    if body is not None:
        payload["comment"] = {"body": body}
    return payload


def make_event(body: str | None, sender: str = "organizer") -> InboundEvent:
    return InboundEvent.from_payload(make_payload(body, sender))


def signed(payload: dict[str, Any], secret: str = TEST_SECRET) -> tuple[bytes, str]:
    """Serialize a payload and sign the exact bytes."""
    body = json.dumps(payload, indent=2).encode("utf-8")
    return body, compute_signature(body, secret)

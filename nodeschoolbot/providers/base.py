"""
Abstract base class for the organization management provider.

The bot only needs a narrow slice of the platform's REST surface: team
memberships, repository and team creation, team listing and issue comments.
This module defines that slice so the engine can be exercised against an
in-memory fake in tests and against the real API in production.
"""

from abc import ABC, abstractmethod
from typing import Any


class OrganizationProvider(ABC):
    """Contract for the outbound team/repository management API.

    Every method performs exactly one logical API operation. Implementations
    raise ``ExternalServiceError`` for transport failures and for any
    non-2xx response; they never retry.

    All methods are async to support non-blocking I/O with HTTP clients.
    """

    @abstractmethod
    async def get_team_membership(self, team_id: int, username: str) -> dict[str, Any]:
        """Read the membership record of ``username`` in a team.

        Returns:
            The membership record; its ``state`` field is ``active`` or
            ``pending``.

        Raises:
            ExternalServiceError: If the user is not a member (404) or the
                request fails.
        """
        pass

    @abstractmethod
    async def add_team_membership(self, team_id: int, username: str, role: str = "member") -> dict[str, Any]:
        """Add or invite ``username`` to a team.

        Raises:
            ExternalServiceError: If the request fails.
        """
        pass

    @abstractmethod
    async def create_repository(
        self,
        name: str,
        *,
        description: str,
        homepage: str,
        team_id: int | None = None,
    ) -> dict[str, Any]:
        """Create a public, auto-initialized repository in the organization.

        Args:
            name: Repository name
            description: Repository description
            homepage: Homepage URL shown on the repository
            team_id: Team granted access to the new repository

        Raises:
            ExternalServiceError: If the request fails.
        """
        pass

    @abstractmethod
    async def create_team(
        self,
        name: str,
        *,
        description: str,
        repo_names: list[str] | None = None,
        privacy: str = "closed",
    ) -> dict[str, Any]:
        """Create a team in the organization.

        Raises:
            ExternalServiceError: If the request fails.
        """
        pass

    @abstractmethod
    async def list_teams(self) -> list[dict[str, Any]]:
        """List every team of the organization, across all pages.

        Raises:
            ExternalServiceError: If any page request fails.
        """
        pass

    @abstractmethod
    async def create_comment(self, repository: str, issue_number: int, body: str) -> dict[str, Any]:
        """Post a comment on an issue or pull request.

        Args:
            repository: Full repository name, ``owner/repo``
            issue_number: Issue or pull request number
            body: Markdown comment body

        Raises:
            ExternalServiceError: If the request fails.
        """
        pass

    async def find_team(self, slug: str) -> dict[str, Any] | None:
        """Find a team of the organization by slug.

        Returns:
            The team record, or None if no team has that slug.
        """
        for team in await self.list_teams():
            if team.get("slug") == slug:
                return team
        return None

    async def connect(self) -> None:
        """Prepare underlying clients. No-op by default."""

    async def disconnect(self) -> None:
        """Release underlying clients. No-op by default."""

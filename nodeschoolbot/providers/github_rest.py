"""GitHub provider implementation using direct REST API calls."""

from typing import Any

import httpx
import structlog

from nodeschoolbot.exceptions import ExternalServiceError
from nodeschoolbot.providers.base import OrganizationProvider
from nodeschoolbot.utils.connection_pool import HTTPConnectionPool, get_pool

log = structlog.get_logger(__name__)

# Media type required for creating teams with repo_names on older API versions
TEAM_PREVIEW_MEDIA_TYPE = "application/vnd.github.hellcat-preview+json"

# Largest page size the API accepts; lists are paginated beyond it
MAX_PAGE_SIZE = 100


class GitHubRestProvider(OrganizationProvider):
    """GitHub implementation using direct REST API calls via httpx."""

    def __init__(
        self,
        token: str,
        organization: str,
        api_url: str = "https://api.github.com",
        user_agent: str = "nodeschoolbot",
        timeout: float = 30.0,
        pool: HTTPConnectionPool | None = None,
    ):
        """Initialize GitHub provider.

        Args:
            token: Personal access token of the bot account
            organization: Organization the bot manages
            api_url: API base URL (for GitHub Enterprise)
            user_agent: User-Agent header sent with every request
            timeout: Request timeout in seconds
            pool: Pre-built connection pool (tests inject one with a mock transport)
        """
        self.token = token.strip() if token else token
        self.organization = organization
        self.api_url = api_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._pool = pool

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self.token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": self.user_agent,
        }

    async def connect(self) -> None:
        """Attach to the shared connection pool for the API base URL."""
        if self._pool is None:
            self._pool = await get_pool(
                name=f"github-{self.api_url}",
                base_url=self.api_url,
                timeout=self.timeout,
                headers=self.headers,
            )
        log.info("github_connected", api_url=self.api_url, organization=self.organization)

    async def disconnect(self) -> None:
        """Drop the pool reference (the pool manager owns the client)."""
        self._pool = None

    async def __aenter__(self) -> "GitHubRestProvider":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request and classify its status.

        Raises:
            ExternalServiceError: On transport failure or a non-2xx status
        """
        if self._pool is None:
            await self.connect()
        assert self._pool is not None

        try:
            response = await self._pool.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log.error("github_request_failed", method=method, path=path, error=str(e))
            raise ExternalServiceError(f"{method} {path} failed: {e}") from e

        if not response.is_success:
            log.warning("github_bad_status", method=method, path=path, status_code=response.status_code)
            raise ExternalServiceError(
                f"Bad status: {response.status_code}",
                status_code=response.status_code,
                response_text=response.text,
            )

        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        """Decode a response body.

        Raises:
            ExternalServiceError: If a non-empty body is not valid JSON
        """
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            log.warning("github_invalid_json", status_code=response.status_code, error=str(e))
            raise ExternalServiceError(
                f"Invalid JSON in response: {e}",
                status_code=response.status_code,
                response_text=response.text,
            ) from e

    async def get_team_membership(self, team_id: int, username: str) -> dict[str, Any]:
        log.debug("get_team_membership", team_id=team_id, username=username)
        response = await self._request("GET", f"/teams/{team_id}/memberships/{username}")
        return self._json(response)

    async def add_team_membership(self, team_id: int, username: str, role: str = "member") -> dict[str, Any]:
        log.info("add_team_membership", team_id=team_id, username=username, role=role)
        response = await self._request(
            "PUT",
            f"/teams/{team_id}/memberships/{username}",
            json={"role": role},
        )
        return self._json(response)

    async def create_repository(
        self,
        name: str,
        *,
        description: str,
        homepage: str,
        team_id: int | None = None,
    ) -> dict[str, Any]:
        log.info("create_repository", organization=self.organization, name=name)

        data: dict[str, Any] = {
            "name": name,
            "description": description,
            "homepage": homepage,
            "private": False,
            "has_issues": True,
            "has_wiki": False,
            "has_downloads": False,
            "auto_init": True,
        }
        if team_id is not None:
            data["team_id"] = team_id

        response = await self._request("POST", f"/orgs/{self.organization}/repos", json=data)
        return self._json(response)

    async def create_team(
        self,
        name: str,
        *,
        description: str,
        repo_names: list[str] | None = None,
        privacy: str = "closed",
    ) -> dict[str, Any]:
        log.info("create_team", organization=self.organization, name=name)

        # "closed" is what the API calls a team visible to the whole organization
        data = {
            "name": name,
            "description": description,
            "repo_names": repo_names or [],
            "privacy": privacy,
        }
        response = await self._request(
            "POST",
            f"/orgs/{self.organization}/teams",
            json=data,
            headers={"Accept": TEAM_PREVIEW_MEDIA_TYPE},
        )
        return self._json(response)

    async def list_teams(self) -> list[dict[str, Any]]:
        teams: list[dict[str, Any]] = []
        page = 1

        while True:
            response = await self._request(
                "GET",
                f"/orgs/{self.organization}/teams",
                params={"per_page": MAX_PAGE_SIZE, "page": page},
            )
            batch = self._json(response) or []
            if not isinstance(batch, list):
                raise ExternalServiceError("Unexpected team listing format", status_code=response.status_code)
            teams.extend(batch)
            if len(batch) < MAX_PAGE_SIZE:
                break
            page += 1

        log.debug("list_teams", organization=self.organization, count=len(teams), pages=page)
        return teams

    async def create_comment(self, repository: str, issue_number: int, body: str) -> dict[str, Any]:
        log.info("create_comment", repository=repository, issue_number=issue_number)
        response = await self._request(
            "POST",
            f"/repos/{repository}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return self._json(response)

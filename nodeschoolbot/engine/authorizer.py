"""Sender authorization against the organizers team."""

import structlog

from nodeschoolbot.enums import MembershipState
from nodeschoolbot.exceptions import AuthorizationError, ExternalServiceError
from nodeschoolbot.providers.base import OrganizationProvider

log = structlog.get_logger(__name__)


class Authorizer:
    """Decides whether a sender may run commands.

    Only active members of one fixed team are allowed. Pending invitations,
    non-members and any failure to read the membership all count as refusals.
    """

    def __init__(self, provider: OrganizationProvider, team_id: int, bot_handle: str):
        """Initialize authorizer.

        Args:
            provider: API used to read team memberships
            team_id: ID of the team whose active members are trusted
            bot_handle: The bot's own login, which is never trusted
        """
        self.provider = provider
        self.team_id = team_id
        self.bot_handle = bot_handle.lstrip("@")

    def is_self(self, login: str) -> bool:
        """Whether ``login`` is the bot itself (its own reply comments)."""
        return login.lower() == self.bot_handle.lower()

    async def is_authorized(self, login: str) -> bool:
        """Check that ``login`` holds an active membership of the team.

        Returns:
            True only for an active membership read successfully.
        """
        if not login or self.is_self(login):
            return False

        try:
            membership = await self.provider.get_team_membership(self.team_id, login)
        except ExternalServiceError as e:
            log.info(
                "authorization_lookup_failed",
                login=login,
                team_id=self.team_id,
                status_code=e.status_code,
                error=e.message,
            )
            return False

        if not isinstance(membership, dict):
            log.warning("authorization_unexpected_membership", login=login, team_id=self.team_id)
            return False

        state = membership.get("state")
        if state != MembershipState.ACTIVE.value:
            log.info("authorization_denied", login=login, team_id=self.team_id, state=state)
            return False

        log.info("authorization_granted", login=login, team_id=self.team_id)
        return True

    async def authorize(self, login: str) -> None:
        """Require an active membership for ``login``.

        Raises:
            AuthorizationError: If the sender may not run commands
        """
        if not await self.is_authorized(login):
            raise AuthorizationError(f"{login} is not an active member of team {self.team_id}", login=login)

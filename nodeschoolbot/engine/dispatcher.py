"""
Delivery dispatcher.

Runs one webhook delivery end to end:

    verify signature -> parse commands -> drop self-authored comments
    -> authorize sender -> execute operations -> synthesize and post reply

Exactly one reply comment is posted for every delivery that gets past the
authorization step. Deliveries dropped earlier (bad signature, nothing to
do, the bot's own comments) get no reply at all.
"""

import json
from dataclasses import dataclass
from enum import Enum

import structlog

from nodeschoolbot.config.settings import BotSettings
from nodeschoolbot.engine.authorizer import Authorizer
from nodeschoolbot.engine.executor import ActionExecutor, resolve_operations
from nodeschoolbot.engine.parser import parse_commands
from nodeschoolbot.engine.report import (
    AggregatedReport,
    ReplyBuilder,
    render_error,
    render_rejection,
    render_reply,
)
from nodeschoolbot.engine.signature import verify_signature
from nodeschoolbot.exceptions import AuthorizationError, SignatureError
from nodeschoolbot.models.domain import InboundEvent
from nodeschoolbot.providers.base import OrganizationProvider
from nodeschoolbot.utils.logging_config import bind_delivery_context, clear_delivery_context

log = structlog.get_logger(__name__)


class DispatchStatus(str, Enum):
    """How a delivery ended."""

    IGNORED = "ignored"
    """Dropped without a reply."""

    REJECTED = "rejected"
    """Sender not authorized; rejection reply posted."""

    COMPLETED = "completed"
    """Operations ran and the summary (or help) was posted."""

    FAILED = "failed"
    """An operation or the reply failed; error reply attempted."""


@dataclass(frozen=True)
class DispatchResult:
    status: DispatchStatus
    reply: str | None = None
    report: AggregatedReport | None = None

    @property
    def status_code(self) -> int:
        """HTTP status for the webhook response."""
        return 500 if self.status == DispatchStatus.FAILED else 200


IGNORED = DispatchResult(status=DispatchStatus.IGNORED)


class CommandDispatcher:
    """Ties the verifier, parser, authorizer, executor and synthesizer together."""

    def __init__(
        self,
        settings: BotSettings,
        provider: OrganizationProvider,
        authorizer: Authorizer | None = None,
        executor: ActionExecutor | None = None,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.authorizer = authorizer or Authorizer(provider, settings.team_id, settings.bot_handle)
        self.executor = executor or ActionExecutor(provider, settings.organization, settings.team_id)

    def verify(self, body: bytes, signature: str | None) -> None:
        """Check the delivery signature unless verification is disabled.

        Raises:
            SignatureError: If the signature is missing or does not match
        """
        if not self.settings.verify:
            return
        if not verify_signature(body, signature, self.settings.secret.get_secret_value()):
            raise SignatureError("Delivery signature does not match the webhook secret")

    async def handle_delivery(self, body: bytes, signature: str | None) -> DispatchResult:
        """Process a raw webhook delivery.

        Args:
            body: Raw request body, exactly as received
            signature: ``X-Hub-Signature`` header value

        Returns:
            DispatchResult describing how the delivery ended
        """
        try:
            self.verify(body, signature)
        except SignatureError as e:
            log.warning("signature_mismatch", has_signature=bool(signature), error=e.message)
            return IGNORED

        try:
            payload = json.loads(body)
        except ValueError:
            log.warning("invalid_payload", size=len(body))
            return IGNORED

        if not isinstance(payload, dict):
            log.warning("invalid_payload", size=len(body))
            return IGNORED

        return await self.dispatch(InboundEvent.from_payload(payload))

    async def dispatch(self, event: InboundEvent) -> DispatchResult:
        """Process a verified, decoded event."""
        bind_delivery_context(repository=event.repository, issue=event.issue_number, sender=event.sender)
        try:
            return await self._dispatch(event)
        finally:
            clear_delivery_context()

    async def _dispatch(self, event: InboundEvent) -> DispatchResult:
        commands = parse_commands(event.comment_body, self.settings.mention)
        if not commands:
            log.debug("no_commands", has_body=commands is not None)
            return IGNORED

        if not event.sender or self.authorizer.is_self(event.sender):
            log.debug("sender_ignored")
            return IGNORED

        if not event.can_reply:
            log.warning("missing_reply_target")
            return IGNORED

        log.info("commands_received", commands=[command.name for command in commands])

        try:
            await self.authorizer.authorize(event.sender)
        except AuthorizationError as e:
            reply = render_rejection(e.login or event.sender, self.settings.team_name)
            if not await self._post_reply(event, reply):
                return DispatchResult(status=DispatchStatus.FAILED, reply=reply)
            return DispatchResult(status=DispatchStatus.REJECTED, reply=reply)

        outcomes = await self.executor.execute(event, resolve_operations(commands))
        report = AggregatedReport.from_outcomes(outcomes)

        builder = ReplyBuilder(self.settings.organization, self.settings.team_name, self.settings.web_url)
        try:
            reply = render_reply(report, builder)
        except Exception as e:
            log.error("reply_rendering_failed", error=str(e), exc_info=True)
            await self._report_failure(event, e)
            return DispatchResult(status=DispatchStatus.FAILED, report=report)

        if reply is not None and not await self._post_reply(event, reply):
            return DispatchResult(status=DispatchStatus.FAILED, reply=reply, report=report)

        if report.failed:
            log.error("delivery_failed", error=str(report.error))
            return DispatchResult(status=DispatchStatus.FAILED, reply=reply, report=report)

        return DispatchResult(status=DispatchStatus.COMPLETED, reply=reply, report=report)

    async def _post_reply(self, event: InboundEvent, body: str) -> bool:
        """Post the reply comment, reporting a failure if it cannot be posted."""
        try:
            await self.provider.create_comment(event.repository, event.issue_number, body)
        except Exception as e:
            log.error("reply_failed", error=str(e), exc_info=True)
            await self._report_failure(event, e)
            return False

        log.info("reply_posted", length=len(body))
        return True

    async def _report_failure(self, event: InboundEvent, error: Exception) -> None:
        """Best-effort error comment; a failure here is only logged."""
        try:
            await self.provider.create_comment(event.repository, event.issue_number, render_error(error))
        except Exception as e:
            log.error("failure_report_failed", error=str(e))

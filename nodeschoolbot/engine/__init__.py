"""Command dispatch engine.

This package holds the core of the bot: signature verification, command
parsing, sender authorization, the concurrent action executor and the
response synthesizer, tied together by ``CommandDispatcher``.

Key Components:
    - verify_signature: HMAC check of a raw delivery body
    - parse_commands: Extract commands addressed to the bot
    - Authorizer: Active-membership check for the sender
    - ActionExecutor: Concurrent fan-out of resolved operations
    - AggregatedReport / ReplyBuilder: Outcome folding and reply rendering
    - CommandDispatcher: The end-to-end delivery pipeline

Example:
    >>> dispatcher = CommandDispatcher(settings, provider)
    >>> result = await dispatcher.handle_delivery(body, signature)
    >>> result.status_code
    200
"""

from nodeschoolbot.engine.authorizer import Authorizer
from nodeschoolbot.engine.dispatcher import CommandDispatcher, DispatchResult, DispatchStatus
from nodeschoolbot.engine.executor import ActionExecutor, resolve_operations
from nodeschoolbot.engine.parser import parse_commands
from nodeschoolbot.engine.report import AggregatedReport, ReplyBuilder, render_reply
from nodeschoolbot.engine.signature import compute_signature, verify_signature

__all__ = [
    "ActionExecutor",
    "AggregatedReport",
    "Authorizer",
    "CommandDispatcher",
    "DispatchResult",
    "DispatchStatus",
    "ReplyBuilder",
    "compute_signature",
    "parse_commands",
    "render_reply",
    "resolve_operations",
    "verify_signature",
]

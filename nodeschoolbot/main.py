"""CLI entry point for nodeschoolbot."""

import sys
from pathlib import Path

import click
import structlog

from nodeschoolbot import __version__
from nodeschoolbot.config.settings import BotSettings
from nodeschoolbot.engine.executor import resolve_operation
from nodeschoolbot.engine.parser import parse_commands
from nodeschoolbot.engine.signature import compute_signature
from nodeschoolbot.exceptions import ConfigurationError
from nodeschoolbot.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

# Subcommands that run without TOKEN/SECRET
COMMANDS_WITHOUT_CONFIG = ["parse"]


@click.group()
@click.option("--config", default=None, help="Path to a YAML configuration file (defaults to the environment)")
@click.option("--log-level", default=None, help="Logging level (overrides LOG_LEVEL, defaults to INFO)")
@click.version_option(__version__, prog_name="nodeschoolbot")
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """nodeschoolbot: organization automation driven by issue comments."""
    configure_logging((log_level or "INFO").upper(), json_output=False)

    if ctx.invoked_subcommand in COMMANDS_WITHOUT_CONFIG:
        ctx.obj = {"settings": None, "log_level": log_level}
        return

    if config and not Path(config).exists():
        click.echo(f"Error: Configuration file not found: {config}", err=True)
        sys.exit(1)

    try:
        settings = BotSettings.load(config)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings, "log_level": log_level}


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to HOST)")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to PORT)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the webhook server."""
    import uvicorn

    from nodeschoolbot.webhook_server import create_app

    settings: BotSettings = ctx.obj["settings"]
    if not settings.verify:
        click.echo("Warning: signature verification is disabled", err=True)

    log_level = ctx.obj["log_level"] or settings.log_level
    uvicorn.run(
        create_app(settings, log_level=log_level),
        host=host or settings.host,
        port=port or settings.port,
        log_level=log_level.lower(),
    )


@cli.command()
@click.argument("text")
@click.option("--handle", default="nodeschoolbot", show_default=True, help="Bot login to look for")
def parse(text: str, handle: str) -> None:
    """Show the commands the bot would read from a comment TEXT."""
    commands = parse_commands(text, handle)

    if commands is None:
        click.echo("No text to parse.")
        return
    if not commands:
        click.echo(f"No mention of @{handle.lstrip('@')} found.")
        return

    for command in commands:
        operation = resolve_operation(command)
        status = f"-> {operation.kind}" if operation else "-> ignored"
        click.echo(" ".join([command.name or "(empty)", *command.args, status]))


@cli.command()
@click.argument("payload", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def sign(ctx: click.Context, payload: Path) -> None:
    """Print the X-Hub-Signature header value for a PAYLOAD file."""
    settings: BotSettings = ctx.obj["settings"]
    click.echo(compute_signature(payload.read_bytes(), settings.secret.get_secret_value()))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

"""Webhook server receiving issue comment deliveries."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import PlainTextResponse

from nodeschoolbot import __version__
from nodeschoolbot.config.settings import BotSettings
from nodeschoolbot.engine.dispatcher import CommandDispatcher
from nodeschoolbot.engine.signature import SIGNATURE_HEADER
from nodeschoolbot.exceptions import ConfigurationError
from nodeschoolbot.providers.base import OrganizationProvider
from nodeschoolbot.providers.github_rest import GitHubRestProvider
from nodeschoolbot.utils.connection_pool import close_all_pools
from nodeschoolbot.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


def create_app(
    settings: BotSettings | None = None,
    provider: OrganizationProvider | None = None,
    log_level: str | None = None,
) -> FastAPI:
    """Build the webhook application.

    Args:
        settings: Bot settings; loaded from the environment on startup if omitted
        provider: Outbound API; a GitHubRestProvider is built from the settings
            if omitted
        log_level: Log level chosen on the command line; overrides
            ``LOG_LEVEL`` from the settings

    Returns:
        FastAPI application whose lifespan wires up the dispatcher
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app_settings = settings or BotSettings.load()
        except ConfigurationError as e:
            log.error("webhook_startup_failed", error=e.message)
            raise

        configure_logging((log_level or app_settings.log_level).upper())

        app_provider = provider or GitHubRestProvider(
            token=app_settings.token.get_secret_value(),
            organization=app_settings.organization,
            api_url=app_settings.api_url,
            user_agent=app_settings.bot_handle,
            timeout=app_settings.request_timeout,
        )
        await app_provider.connect()

        app.state.settings = app_settings
        app.state.dispatcher = CommandDispatcher(app_settings, app_provider)
        log.info(
            "webhook_server_started",
            bot_handle=app_settings.bot_handle,
            organization=app_settings.organization,
            verify=app_settings.verify,
        )

        try:
            yield
        finally:
            await app_provider.disconnect()
            await close_all_pools()
            log.info("webhook_server_stopped")

    app = FastAPI(title="nodeschoolbot", version=__version__, lifespan=lifespan)

    @app.get("/", response_class=PlainTextResponse)
    async def greeting() -> str:
        """Static greeting; GET requests are never processed."""
        return "hello, i am the nodeschoolbot\n"

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "service": "nodeschoolbot"}

    @app.post("/")
    @app.post("/webhook")
    async def webhook(request: Request) -> Response:
        """Handle an issue comment delivery."""
        dispatcher: CommandDispatcher = request.app.state.dispatcher

        body = await request.body()
        signature = request.headers.get(SIGNATURE_HEADER)
        log.info(
            "webhook_received",
            event_type=request.headers.get("X-GitHub-Event"),
            delivery=request.headers.get("X-GitHub-Delivery"),
        )

        try:
            result = await dispatcher.handle_delivery(body, signature)
        except Exception as e:
            log.error("webhook_processing_unexpected", error=str(e), exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error") from e

        log.info("webhook_processed", status=result.status.value, status_code=result.status_code)
        return Response(status_code=result.status_code)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)  # nosec B104 # Development server binding

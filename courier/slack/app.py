"""
Slack Bolt App
==============

Creates the Slack Bolt application and the connection that feeds it events.

Two ways to receive events:
- Socket Mode, when SLACK_APP_TOKEN is set: a WebSocket to Slack, no public
  URL needed
- HTTP mode otherwise: Bolt's aiohttp web app listens on PORT and Slack
  delivers events to /slack/events (request signatures are verified with
  SLACK_SIGNING_SECRET)
"""

import asyncio

from aiohttp import web
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp

from courier.utils.config import Config, get_config, require_slack_credentials
from courier.utils.logger import Logger

logger = Logger("SlackApp")

EVENTS_PATH = "/slack/events"


def create_slack_app(config: Config | None = None) -> AsyncApp:
    """
    Create the Bolt app.

    Raises:
        ConfigurationError: If the bot token or signing secret is missing
    """
    config = config or get_config()
    bot_token, signing_secret = require_slack_credentials(config)

    app = AsyncApp(
        token=bot_token,
        signing_secret=signing_secret,
    )

    logger.info("Slack Bolt app created")
    return app


def uses_socket_mode(config: Config | None = None) -> bool:
    config = config or get_config()
    return bool(config.slack.app_token)


async def create_socket_handler(app: AsyncApp, config: Config | None = None) -> AsyncSocketModeHandler:
    """Create a Socket Mode handler. Requires SLACK_APP_TOKEN."""
    config = config or get_config()

    handler = AsyncSocketModeHandler(
        app=app,
        app_token=config.slack.app_token
    )

    logger.info("Socket Mode handler created")
    return handler


async def serve(app: AsyncApp, config: Config | None = None) -> None:
    """Receive events until stopped, over Socket Mode or HTTP."""
    config = config or get_config()

    if uses_socket_mode(config):
        handler = await create_socket_handler(app, config)
        logger.info("Starting Socket Mode connection...")
        try:
            await handler.start_async()
        finally:
            await handler.close_async()
        return

    logger.info(f"Starting HTTP server on port {config.slack.port}...")
    runner = web.AppRunner(app.web_app(path=EVENTS_PATH, port=config.slack.port))
    await runner.setup()
    site = web.TCPSite(runner, port=config.slack.port)
    await site.start()
    try:
        # Serve until the task is cancelled
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()

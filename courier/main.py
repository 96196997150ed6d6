"""
Courier Bot - Main Entry Point
==============================

Two commands:

    courier                                 # run the Slack bot
    courier-index [--reset] FILE [FILE...]  # load text files into the document index

Both commands load a .env file before anything is logged.

Running the bot:
1. Loads configuration
2. Builds the agent (tools, completion client, shared history)
3. Creates the Slack app and registers handlers
4. Serves events until interrupted

Run with:
    python -m courier.main
"""

import asyncio
import signal
import sys

from dotenv import load_dotenv

from courier.utils.config import get_config
from courier.utils.logger import Logger

main_logger = Logger("Main")


async def main():
    """Start the Slack bot and serve until a shutdown signal."""
    main_logger.info("Starting Courier Bot...")

    # 1. Configuration
    main_logger.info("Loading configuration...")
    config = get_config()

    # 2. Agent (registers tools; a duplicate tool name stops startup here)
    main_logger.info("Creating agent...")
    from courier.agent.runner import get_agent
    agent = get_agent()

    # 3. Slack app
    main_logger.info("Creating Slack app...")
    from courier.slack.app import create_slack_app, serve
    app = create_slack_app(config)

    # 4. Handlers
    main_logger.info("Registering event handlers...")
    from courier.slack.handlers import register_handlers
    register_handlers(app, agent, config.slack.reply_timeout_seconds)

    # 5. Serve until SIGINT/SIGTERM
    server = asyncio.create_task(serve(app, config))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, server.cancel)

    main_logger.info("Courier Bot is running! Press Ctrl+C to stop.")
    try:
        await server
    except asyncio.CancelledError:
        main_logger.info("Shutdown complete")


def run():
    """
    Synchronous entry point for the `courier` command.

    Startup errors (missing configuration, duplicate tools) exit with
    status 1.
    """
    load_dotenv()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        main_logger.error("Failed to start bot", e)
        sys.exit(1)


async def _index(paths: list[str], reset: bool = False) -> int:
    from courier.rag import DocumentIndex

    index = DocumentIndex.from_config(get_config())
    if reset:
        index.vectorstore.clear()

    total = 0
    for path in paths:
        try:
            total += await index.load_document(path)
        except (OSError, UnicodeDecodeError) as e:
            main_logger.error(f"Could not read {path}", e)
    main_logger.info(f"Stored {total} chunks from {len(paths)} file(s)")
    return total


def run_indexer():
    """Entry point for the `courier-index` command."""
    load_dotenv()
    args = sys.argv[1:]
    reset = "--reset" in args
    paths = [arg for arg in args if arg != "--reset"]
    if not paths:
        print("usage: courier-index [--reset] FILE [FILE...]", file=sys.stderr)
        sys.exit(2)

    try:
        asyncio.run(_index(paths, reset=reset))
    except Exception as e:
        main_logger.error("Indexing failed", e)
        sys.exit(1)


if __name__ == "__main__":
    run()

"""
Slack Integration
=================

Slack-facing side of the bot:
- Bolt app creation (Socket Mode or HTTP)
- Event handlers for mentions, DMs and the /courier command
"""

from courier.slack.app import create_slack_app, serve
from courier.slack.handlers import register_handlers

__all__ = ["create_slack_app", "register_handlers", "serve"]

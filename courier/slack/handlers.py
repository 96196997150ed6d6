"""
Slack Event Handlers
====================

Routes Slack events to the agent and posts its replies.

Event Types:
- app_mention: someone mentions @Courier in a channel; reply in thread
- message.im: direct messages to the bot; reply in the DM
- /courier: slash command with `help` and `status`

Handler Pattern:
    1. Receive event from Slack
    2. Extract the text
    3. Run the agent (bounded by SLACK_REPLY_TIMEOUT_SECONDS)
    4. Reply on the same channel

Error Handling:
    The agent already turns its own failures into reply text. Anything that
    still escapes (a timeout, a Slack API error) is logged and answered with
    an apology, so a failed request never takes the bot down.
"""

import asyncio
import re
from typing import TYPE_CHECKING

from slack_bolt.async_app import AsyncAck, AsyncApp, AsyncSay

from courier.utils.logger import Logger

if TYPE_CHECKING:
    from courier.agent import Agent

logger = Logger("Handlers")

ERROR_REPLY = "Sorry, I encountered an error processing your request."
TIMEOUT_REPLY = "Sorry, that took too long to answer. Please try again."
EMPTY_REPLY = "I don't have anything to add to that."

_MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+>")

# Set during registration
_agent: "Agent | None" = None
_reply_timeout_seconds: float = 180.0


def register_handlers(app: AsyncApp, agent: "Agent", reply_timeout_seconds: float = 180.0) -> None:
    """
    Register all event handlers with the Slack app.

    Args:
        app: The Bolt app instance
        agent: The agent that answers requests
        reply_timeout_seconds: Upper bound on one request; the agent's work
            is cancelled when it is exceeded
    """
    global _agent, _reply_timeout_seconds
    _agent = agent
    _reply_timeout_seconds = reply_timeout_seconds

    app.event("app_mention")(_handle_mention)
    app.event("message")(_handle_message)
    app.command("/courier")(_handle_command)

    logger.info("Registered Slack event handlers")


def strip_mentions(text: str) -> str:
    """Remove user mentions like <@U123ABC> from message text."""
    return _MENTION_PATTERN.sub("", text).strip()


async def _answer(text: str) -> str:
    """Run the agent for one request and return reply text. Never raises."""
    if _agent is None:
        logger.error("Agent not initialized")
        return "Sorry, I'm still starting up. Please try again in a moment."

    try:
        reply = await asyncio.wait_for(_agent.run(text), timeout=_reply_timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"Request abandoned after {_reply_timeout_seconds:g}s")
        return TIMEOUT_REPLY
    except Exception as e:
        logger.error("Error running agent", e)
        return ERROR_REPLY

    return reply or EMPTY_REPLY


async def _handle_mention(event: dict, say: AsyncSay) -> None:
    """
    Handle @mentions of the bot in channels.

    Replies in the thread of the mention.
    """
    user_id = event.get("user")
    channel_id = event.get("channel")
    thread_ts = event.get("thread_ts") or event.get("ts")
    text = strip_mentions(event.get("text", ""))

    if not text:
        await say(text="Hi! How can I help you?", thread_ts=thread_ts)
        return

    logger.info(f"Mention from {user_id} in {channel_id}: {text[:50]}...")

    reply = await _answer(text)
    try:
        await say(text=reply, thread_ts=thread_ts)
    except Exception as e:
        logger.error("Error replying to mention", e)


async def _handle_message(event: dict, say: AsyncSay) -> None:
    """
    Handle direct messages to the bot.

    Channel messages are ignored (mentions arrive as app_mention), as are
    bot messages, including our own replies, and edits/deletes.
    """
    if event.get("channel_type") != "im":
        return
    if event.get("bot_id"):
        return
    if event.get("subtype"):
        return

    text = event.get("text", "")
    if not text:
        return

    logger.info(f"DM from {event.get('user')}: {text[:50]}...")

    reply = await _answer(text)
    try:
        await say(text=reply)
    except Exception as e:
        logger.error("Error replying to DM", e)


HELP_TEXT = """*Courier* - Your Slack Assistant

*Commands:*
- `/courier help` - Show this help message
- `/courier status` - Check bot status

*Usage:*
- Mention me (@Courier) in any channel, or DM me
- I can do arithmetic, tell the time, echo text, send email, and write or publish LinkedIn posts

*Examples:*
- "What's (1250 * 12) / 7?"
- "Email alice@example.com the notes from today with subject 'Standup'"
- "Write a casual LinkedIn post about our launch, but don't publish it"
"""


async def _handle_command(ack: AsyncAck, command: dict, say: AsyncSay) -> None:
    """
    Handle the /courier slash command.

    Must acknowledge within 3 seconds, so ack() comes first.
    """
    await ack()

    if _agent is None:
        await say("Sorry, I'm still starting up.")
        return

    text = command.get("text", "").strip().lower()

    if text == "help" or not text:
        await say(text=HELP_TEXT)

    elif text == "status":
        status_text = f"""*Bot Status*
- Status: Online
- Model: {_agent.model}
- Tools available: {len(_agent.registry)}
- Conversation turns: {len(_agent.history)}
- Busy: {"yes" if _agent.history.busy else "no"}"""
        await say(text=status_text)

    else:
        await say(text=f"Unknown command: `{text}`. Try `/courier help`")

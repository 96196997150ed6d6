"""
Email Tools
===========

Sends email on the model's behalf through an SMTP account.

SMTP Notes:
- Credentials come from EMAIL_USER / EMAIL_PASS (for Gmail, an app
  password, not the account password)
- Port 465 uses implicit TLS; any other port upgrades with STARTTLS
- smtplib is blocking, so the send runs in a worker thread
"""

import asyncio
import smtplib
from email.message import EmailMessage

from courier.tools import ArgumentSpec, ToolDefinition, ToolErrorKind, ToolResult
from courier.utils.config import EmailConfig, get_config
from courier.utils.logger import Logger

logger = Logger("EmailTools")

SMTP_TIMEOUT_SECONDS = 20


def _split_addresses(value: str | None) -> list[str]:
    """Split a comma-separated address list, dropping blanks."""
    if not value:
        return []
    return [address.strip() for address in value.split(",") if address.strip()]


def build_message(
    sender: str,
    to: str,
    subject: str,
    body: str,
    cc: str | None = None,
    bcc: str | None = None
) -> EmailMessage:
    """
    Build the email. Bcc recipients are not written into the headers; they
    are passed to the SMTP envelope separately.
    """
    message = EmailMessage()
    message["From"] = sender
    message["To"] = ", ".join(_split_addresses(to))
    if cc:
        message["Cc"] = ", ".join(_split_addresses(cc))
    message["Subject"] = subject
    message.set_content(body)
    return message


def _deliver(config: EmailConfig, message: EmailMessage, recipients: list[str]) -> None:
    """Open an SMTP connection, log in and send. Runs in a worker thread."""
    if config.smtp_port == 465:
        with smtplib.SMTP_SSL(config.smtp_host, config.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            smtp.login(config.user, config.password)
            smtp.send_message(message, to_addrs=recipients)
    else:
        with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            smtp.starttls()
            smtp.login(config.user, config.password)
            smtp.send_message(message, to_addrs=recipients)


# ==============================================================================
# Tool: Send Email
# ==============================================================================

async def _send_email(params: dict) -> ToolResult:
    """Send an email with optional CC and BCC recipients."""
    config = get_config().email

    if not config.is_configured:
        return ToolResult.failure(
            ToolErrorKind.NOT_CONFIGURED,
            "Email is not configured. Set EMAIL_USER and EMAIL_PASS in .env "
            "(for Gmail, use an app password)."
        )

    to = params["to"]
    cc = params.get("cc")
    bcc = params.get("bcc")

    recipients = _split_addresses(to) + _split_addresses(cc) + _split_addresses(bcc)
    if not _split_addresses(to):
        return ToolResult.failure(
            ToolErrorKind.EXECUTION_FAILED,
            "Failed to send email: no recipient address given"
        )

    message = build_message(config.user, to, params["subject"], params["message"], cc, bcc)

    try:
        await asyncio.to_thread(_deliver, config, message, recipients)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending email to {to}", e)
        return ToolResult.failure(ToolErrorKind.EXECUTION_FAILED, f"Failed to send email: {e}")

    logger.info(f"Sent email to {len(recipients)} recipient(s)")

    confirmation = f"Email successfully sent to {to}"
    if cc:
        confirmation += f" (CC: {cc})"
    if bcc:
        confirmation += f" (BCC: {bcc})"
    return ToolResult.ok(confirmation)


send_email_tool = ToolDefinition(
    name="send_email",
    description=(
        "Send an email to one or more recipients. Provide recipient email "
        "address(es), subject line, and message body. Optionally include CC and "
        "BCC recipients. Returns a confirmation message."
    ),
    arguments=(
        ArgumentSpec("to", "string", "Recipient email address(es), comma-separated for multiple recipients"),
        ArgumentSpec("subject", "string", "Email subject line"),
        ArgumentSpec("message", "string", "Email message body"),
        ArgumentSpec("cc", "string", "CC recipient email address(es), comma-separated", required=False),
        ArgumentSpec("bcc", "string", "BCC recipient email address(es), comma-separated", required=False),
    ),
    execute=_send_email,
)


TOOLS = (send_email_tool,)

"""
LinkedIn Tools
==============

Tools for writing and publishing LinkedIn posts.

These tools allow the agent to:
- Draft a post about a topic with the language model
- Publish text to the member's feed
- Do both in one step

LinkedIn API Notes:
- Uses httpx for async HTTP requests against the UGC Posts API
- Needs a member access token with the w_member_social scope
  (LINKEDIN_ACCESS_TOKEN) and the member's person id (LINKEDIN_PERSON_ID)
- The token is read from configuration; there is no OAuth flow here
"""

from typing import TYPE_CHECKING

import httpx

from courier.errors import CompletionError
from courier.tools import ArgumentSpec, ToolDefinition, ToolErrorKind, ToolResult
from courier.utils.config import get_config
from courier.utils.logger import Logger

if TYPE_CHECKING:
    from courier.agent.completion import CompletionClient

logger = Logger("LinkedInTools")

LINKEDIN_API = "https://api.linkedin.com/v2"
REQUEST_TIMEOUT_SECONDS = 20.0

TONES = ("professional", "casual", "inspiring", "informative", "conversational")
LENGTHS = ("short", "medium", "long")
VISIBILITIES = ("PUBLIC", "CONNECTIONS")

_WORD_RANGES = {
    "short": "50-100",
    "medium": "150-300",
    "long": "300-500",
}

# Client used to draft posts (set by the runner at startup)
_completion_client: "CompletionClient | None" = None


def set_completion_client(client: "CompletionClient") -> None:
    """Set the completion client used to draft posts."""
    global _completion_client
    _completion_client = client


def _make_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS)


def build_post_prompt(topic: str, tone: str, length: str, include_hashtags: bool) -> str:
    """Build the drafting prompt sent to the model."""
    lines = [
        f'Generate a LinkedIn post about: "{topic}".',
        f"Write it in a {tone} tone.",
    ]
    if include_hashtags:
        lines.append("Include 3-5 relevant hashtags at the end.")
    lines.append(
        "Make it engaging, valuable, and appropriate for LinkedIn. "
        f"Keep it between {_WORD_RANGES[length]} words."
    )
    lines.append("Return only the post content, no additional text.")
    return "\n".join(lines)


def build_ugc_payload(person_id: str, text: str, visibility: str) -> dict:
    """Request body for the UGC Posts API."""
    return {
        "author": f"urn:li:person:{person_id}",
        "lifecycleState": "PUBLISHED",
        "specificContent": {
            "com.linkedin.ugc.ShareContent": {
                "shareCommentary": {"text": text},
                "shareMediaCategory": "NONE",
            }
        },
        "visibility": {
            "com.linkedin.ugc.MemberNetworkVisibility": visibility,
        },
    }


def _error_message(response: httpx.Response) -> str:
    """Pull a readable message out of a LinkedIn error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return response.reason_phrase or response.text or "Unknown error"


async def _draft_post(topic: str, tone: str, length: str, include_hashtags: bool) -> ToolResult:
    if _completion_client is None:
        return ToolResult.failure(
            ToolErrorKind.NOT_CONFIGURED,
            "Post generation is not available: no language model client is configured."
        )

    prompt = build_post_prompt(topic, tone, length, include_hashtags)
    try:
        post = await _completion_client.generate_text(prompt)
    except CompletionError as e:
        logger.error("Error generating LinkedIn post", e)
        return ToolResult.failure(ToolErrorKind.EXECUTION_FAILED, f"Failed to generate LinkedIn post: {e}")

    post = post.strip()
    if not post:
        return ToolResult.failure(ToolErrorKind.EXECUTION_FAILED, "Failed to generate LinkedIn post: empty response")
    return ToolResult.ok(post)


async def publish_post(text: str, visibility: str = "PUBLIC") -> ToolResult:
    """
    Publish text to the configured member's LinkedIn feed.

    Returns a failed ToolResult (never raises) when credentials are missing
    or LinkedIn rejects the post.
    """
    config = get_config().linkedin

    missing = [
        name for name, value in (
            ("LINKEDIN_ACCESS_TOKEN", config.access_token),
            ("LINKEDIN_PERSON_ID", config.person_id),
        )
        if not value
    ]
    if missing:
        return ToolResult.failure(
            ToolErrorKind.NOT_CONFIGURED,
            f"LinkedIn is not configured. Set {' and '.join(missing)} in .env"
        )

    headers = {
        "Authorization": f"Bearer {config.access_token}",
        "Content-Type": "application/json",
        "X-Restli-Protocol-Version": "2.0.0",
    }

    try:
        async with _make_client() as client:
            response = await client.post(
                f"{LINKEDIN_API}/ugcPosts",
                headers=headers,
                json=build_ugc_payload(config.person_id, text, visibility),
            )
    except httpx.HTTPError as e:
        logger.error("Error posting to LinkedIn", e)
        return ToolResult.failure(ToolErrorKind.EXECUTION_FAILED, f"Failed to post to LinkedIn: {e}")

    if response.status_code >= 400:
        logger.error(f"LinkedIn API error: {response.status_code} - {response.text}")
        return ToolResult.failure(
            ToolErrorKind.EXECUTION_FAILED,
            f"Failed to post to LinkedIn: {_error_message(response)} (Status: {response.status_code})"
        )

    post_id = response.headers.get("x-restli-id")
    if not post_id:
        try:
            post_id = response.json().get("id")
        except ValueError:
            post_id = None

    logger.info(f"Published LinkedIn post {post_id or '(no id)'}")
    return ToolResult.ok(f"LinkedIn post published! Post ID: {post_id or 'N/A'}")


# ==============================================================================
# Tool: Generate Post
# ==============================================================================

async def _generate_post(params: dict) -> ToolResult:
    return await _draft_post(
        params["topic"], params["tone"], params["length"], params["include_hashtags"]
    )


generate_post_tool = ToolDefinition(
    name="generate_linkedin_post",
    description=(
        "Write a LinkedIn post about a topic without publishing it. "
        "Use this to show the user a draft."
    ),
    arguments=(
        ArgumentSpec("topic", "string", "The topic or subject for the post"),
        ArgumentSpec("tone", "string", "The tone of the post", required=False,
                     default="professional", choices=TONES),
        ArgumentSpec("length", "string", "Approximate length of the post", required=False,
                     default="medium", choices=LENGTHS),
        ArgumentSpec("include_hashtags", "boolean", "Whether to add hashtags", required=False,
                     default=True),
    ),
    execute=_generate_post,
)


# ==============================================================================
# Tool: Post to LinkedIn
# ==============================================================================

async def _post_to_linkedin(params: dict) -> ToolResult:
    text = params["text"]
    result = await publish_post(text, params["visibility"])
    if not result.success:
        return result
    return ToolResult.ok(f"{result.content}\n\nPosted Content:\n{text}")


post_to_linkedin_tool = ToolDefinition(
    name="post_to_linkedin",
    description=(
        "Post provided text directly to LinkedIn without AI generation. "
        "Use this when you have specific content to post."
    ),
    arguments=(
        ArgumentSpec("text", "string", "The exact text content to post on LinkedIn"),
        ArgumentSpec("visibility", "string",
                     "PUBLIC (everyone) or CONNECTIONS (only connections)",
                     required=False, default="PUBLIC", choices=VISIBILITIES),
    ),
    execute=_post_to_linkedin,
)


# ==============================================================================
# Tool: Generate and Post
# ==============================================================================

async def _generate_and_post(params: dict) -> ToolResult:
    draft = await _draft_post(params["topic"], params["tone"], params["length"], True)
    if not draft.success:
        return draft

    if not params["auto_post"]:
        return ToolResult.ok(f"Draft (not posted):\n{draft.content}")

    result = await publish_post(draft.content, params["visibility"])
    text = f"{result.content}\n\nGenerated Post:\n{draft.content}"
    if not result.success:
        return ToolResult.failure(result.error_kind, text)
    return ToolResult.ok(text)


generate_and_post_tool = ToolDefinition(
    name="generate_and_post_linkedin",
    description=(
        "Generate a LinkedIn post about a topic and publish it. Set auto_post "
        "to false to only return the draft."
    ),
    arguments=(
        ArgumentSpec("topic", "string", "The topic or subject for the post"),
        ArgumentSpec("tone", "string", "The tone of the post", required=False,
                     default="professional", choices=TONES),
        ArgumentSpec("length", "string", "Approximate length of the post", required=False,
                     default="medium", choices=LENGTHS),
        ArgumentSpec("visibility", "string",
                     "PUBLIC (everyone) or CONNECTIONS (only connections)",
                     required=False, default="PUBLIC", choices=VISIBILITIES),
        ArgumentSpec("auto_post", "boolean", "Publish immediately after generating",
                     required=False, default=True),
    ),
    execute=_generate_and_post,
)


TOOLS = (generate_post_tool, post_to_linkedin_tool, generate_and_post_tool)

"""LINE Messaging API edge: webhook parsing, signature check, Reply API.

Only text and image message events are understood. Everything else in a
webhook body (follow, unfollow, postback, ...) is ignored.
"""

import base64
import hashlib
import hmac
import logging
import os

import requests

from src.agent.models import SOURCE_TYPES, InboundMessage, OutboundReply

logger = logging.getLogger(__name__)

REPLY_API_URL = "https://api.line.me/v2/bot/message/reply"
MAX_MESSAGE_LENGTH = 5000
TRUNCATED_LENGTH = 4990
REQUEST_TIMEOUT_SECONDS = 15

SUPPORTED_MESSAGE_TYPES = ("text", "image")

_STATUS_ERRORS = {
    400: "LINE API: Bad Request - Invalid payload format",
    401: "LINE API: Authentication failed - Invalid Channel Access Token",
    403: "LINE API: Forbidden - Insufficient permissions",
    429: "LINE API: Rate limit exceeded",
}


# -- Inbound -----------------------------------------------------------------

def verify_signature(body: bytes, signature: str | None, channel_secret: str) -> bool:
    """Check X-Line-Signature: base64(HMAC-SHA256(channel_secret, body))."""
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature)


def parse_event(event: dict) -> InboundMessage | None:
    """Normalize one webhook event. Returns None for unsupported events.

    Raises KeyError/TypeError/ValueError on a malformed message event.
    """
    if event.get("type") != "message":
        return None

    message = event["message"]
    message_type = message["type"]
    if message_type not in SUPPORTED_MESSAGE_TYPES:
        return None

    source = event["source"]
    source_type = source.get("type", "user")
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"Unknown source type: {source_type}")

    return InboundMessage(
        user_id=source.get("userId") or "",
        text=message.get("text") if message_type == "text" else None,
        reply_token=event["replyToken"],
        timestamp=int(event["timestamp"]),
        source_type=source_type,
        message_type=message_type,
        image_id=message.get("id") if message_type == "image" else None,
    )


def parse_webhook_body(body: dict) -> list[InboundMessage]:
    """Extract the supported message events from a webhook body."""
    events = body.get("events") if isinstance(body, dict) else None
    if not isinstance(events, list):
        logger.error("Webhook body has no events list")
        return []

    messages = []
    for event in events:
        try:
            parsed = parse_event(event)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error("Failed to process LINE message event (%s): %r", exc, event)
            continue
        if parsed is not None:
            messages.append(parsed)
            logger.info(
                "LINE message processed (user=%s, type=%s)",
                parsed.user_id, parsed.message_type,
            )
    return messages


# -- Outbound ----------------------------------------------------------------

def clamp_message(message: str) -> str:
    """Fit a message under LINE's 5000 character limit."""
    if len(message) <= MAX_MESSAGE_LENGTH:
        return message
    return message[:TRUNCATED_LENGTH] + "..."


class LineReplyClient:
    """Delivers OutboundReply objects through the LINE Reply API."""

    def __init__(self, access_token: str | None = None, session: requests.Session | None = None):
        self.access_token = access_token if access_token is not None else os.environ.get("LINE_CHANNEL_ACCESS_TOKEN", "")
        self.session = session or requests.Session()

    def build_payload(self, reply: OutboundReply) -> dict:
        return {
            "replyToken": reply.reply_token,
            "messages": [{"type": "text", "text": clamp_message(reply.message)}],
        }

    def send(self, reply: OutboundReply) -> bool:
        """POST the reply. Returns True on success; logs and returns False otherwise."""
        if not reply.message:
            logger.warning("Invalid or empty message received (user=%s)", reply.user_id)
            return False
        if not reply.reply_token:
            logger.warning("No reply token provided for LINE message (user=%s)", reply.user_id)
            return False
        if not reply.user_id:
            logger.warning("No userId provided for LINE message (token=%s)", reply.reply_token)
            return False
        if not self.access_token:
            logger.error("LINE_CHANNEL_ACCESS_TOKEN not configured (user=%s)", reply.user_id)
            return False

        if len(reply.message) > MAX_MESSAGE_LENGTH:
            logger.warning(
                "Message too long for LINE API, truncating (user=%s, length=%d)",
                reply.user_id, len(reply.message),
            )

        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.session.post(
                REPLY_API_URL,
                json=self.build_payload(reply),
                headers=headers,
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as exc:
            logger.error("LINE Send Error (user=%s): %s", reply.user_id, exc)
            return False

        if resp.status_code >= 400:
            error = _response_error(resp)
            label = _STATUS_ERRORS.get(resp.status_code, "LINE Send Error")
            logger.error("%s (status=%d, user=%s): %s", label, resp.status_code, reply.user_id, error)
            return False

        logger.info("LINE message sent to user %s: %d", reply.user_id, resp.status_code)
        return True


def _response_error(resp: requests.Response):
    try:
        return resp.json()
    except ValueError:
        return resp.text

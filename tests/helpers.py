"""Test doubles shared across the suite.

The Gemini client is always mocked: generators receive a MagicMock shaped
like GenerationClient whose generate() replays scripted responses.
"""

from unittest.mock import MagicMock

from src.agent.llm import FailureKind, GenerationClient, GenerationFailure
from src.agent.models import InboundMessage


def make_client(*responses) -> MagicMock:
    """Mock GenerationClient returning each response in turn.

    Exception instances in responses are raised instead of returned.
    """
    client = MagicMock(spec=GenerationClient)
    client.generate.side_effect = list(responses)
    return client


def quota_failure() -> GenerationFailure:
    return GenerationFailure(FailureKind.QUOTA_EXCEEDED, status_code=429)


def other_failure() -> GenerationFailure:
    return GenerationFailure(FailureKind.OTHER, status_code=503, cause=ConnectionError("unreachable"))


def make_message(text: str | None = "hello", message_type: str = "text", user_id: str = "U123") -> InboundMessage:
    return InboundMessage(
        user_id=user_id,
        text=text,
        reply_token="reply-token-1",
        timestamp=1736300000000,
        source_type="user",
        message_type=message_type,
        image_id="img-1" if message_type == "image" else None,
    )

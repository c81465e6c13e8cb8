"""Tests for the LINE edge: webhook parsing, signatures, Reply API client."""

import base64
import hashlib
import hmac
from unittest.mock import MagicMock

import pytest
import requests

from src.agent.models import OutboundReply
from src.interface.line import (
    MAX_MESSAGE_LENGTH,
    REPLY_API_URL,
    LineReplyClient,
    clamp_message,
    parse_webhook_body,
    verify_signature,
)


def _text_event(text="hello", user_id="U1", token="tok-1"):
    return {
        "type": "message",
        "mode": "active",
        "timestamp": 1736300000000,
        "source": {"type": "user", "userId": user_id},
        "message": {"type": "text", "id": "m1", "text": text},
        "replyToken": token,
    }


def _image_event():
    return {
        "type": "message",
        "timestamp": 1736300000001,
        "source": {"type": "group", "userId": "U2", "groupId": "G1"},
        "message": {"type": "image", "id": "img-9", "contentProvider": {"type": "line"}},
        "replyToken": "tok-2",
    }


def _sign(secret: str, body: bytes) -> str:
    return base64.b64encode(hmac.new(secret.encode(), body, hashlib.sha256).digest()).decode()


def _response(status_code, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    return resp


class TestParseWebhookBody:

    def test_text_event(self):
        [message] = parse_webhook_body({"destination": "D", "events": [_text_event("I ran 5km")]})
        assert message.user_id == "U1"
        assert message.text == "I ran 5km"
        assert message.reply_token == "tok-1"
        assert message.timestamp == 1736300000000
        assert message.source_type == "user"
        assert message.is_text

    def test_image_event(self):
        [message] = parse_webhook_body({"events": [_image_event()]})
        assert message.message_type == "image"
        assert message.image_id == "img-9"
        assert message.text is None
        assert not message.is_text

    def test_non_message_events_ignored(self):
        body = {"events": [{"type": "follow", "replyToken": "t", "source": {"type": "user"}}, _text_event()]}
        assert len(parse_webhook_body(body)) == 1

    def test_unsupported_message_type_ignored(self):
        event = _text_event()
        event["message"] = {"type": "sticker", "id": "s1"}
        assert parse_webhook_body({"events": [event]}) == []

    def test_malformed_event_skipped(self):
        broken = _text_event()
        del broken["replyToken"]
        messages = parse_webhook_body({"events": [broken, _text_event(token="tok-ok")]})
        assert [m.reply_token for m in messages] == ["tok-ok"]

    def test_unknown_source_type_skipped(self):
        event = _text_event()
        event["source"]["type"] = "channel"
        assert parse_webhook_body({"events": [event]}) == []

    @pytest.mark.parametrize("body", [{}, {"events": None}, {"events": "nope"}, []])
    def test_bodies_without_events(self, body):
        assert parse_webhook_body(body) == []


class TestVerifySignature:

    def test_valid_signature(self):
        body = b'{"events": []}'
        assert verify_signature(body, _sign("secret", body), "secret")

    def test_tampered_body(self):
        signature = _sign("secret", b'{"events": []}')
        assert not verify_signature(b'{"events": [1]}', signature, "secret")

    def test_missing_signature(self):
        assert not verify_signature(b"{}", None, "secret")


class TestClampMessage:

    def test_short_message_untouched(self):
        assert clamp_message("hi") == "hi"

    def test_exact_limit_untouched(self):
        text = "a" * MAX_MESSAGE_LENGTH
        assert clamp_message(text) == text

    def test_long_message_truncated(self):
        clamped = clamp_message("a" * 6000)
        assert len(clamped) == 4993
        assert clamped.endswith("...")


class TestLineReplyClient:

    def _client(self, status=200, token="token-abc"):
        session = MagicMock(spec=requests.Session)
        session.post.return_value = _response(status, {"message": "err"})
        return LineReplyClient(access_token=token, session=session), session

    def test_posts_reply(self):
        client, session = self._client()
        assert client.send(OutboundReply(user_id="U1", message="Hello", reply_token="tok"))

        args, kwargs = session.post.call_args
        assert args[0] == REPLY_API_URL
        assert kwargs["json"] == {"replyToken": "tok", "messages": [{"type": "text", "text": "Hello"}]}
        assert kwargs["headers"]["Authorization"] == "Bearer token-abc"

    def test_long_message_is_clamped(self):
        client, session = self._client()
        client.send(OutboundReply(user_id="U1", message="x" * 5001, reply_token="tok"))
        sent = session.post.call_args.kwargs["json"]["messages"][0]["text"]
        assert len(sent) == 4993

    @pytest.mark.parametrize("status", [400, 401, 403, 429, 500])
    def test_error_status_returns_false(self, status):
        client, _ = self._client(status=status)
        assert not client.send(OutboundReply(user_id="U1", message="Hello", reply_token="tok"))

    def test_network_error_returns_false(self):
        client, session = self._client()
        session.post.side_effect = requests.ConnectionError("down")
        assert not client.send(OutboundReply(user_id="U1", message="Hello", reply_token="tok"))

    def test_missing_token_skips_request(self):
        client, session = self._client(token="")
        assert not client.send(OutboundReply(user_id="U1", message="Hello", reply_token="tok"))
        session.post.assert_not_called()

    @pytest.mark.parametrize("user_id,reply_token", [("", "tok"), ("U1", "")])
    def test_missing_identity_skips_request(self, user_id, reply_token):
        client, session = self._client()
        assert not client.send(OutboundReply(user_id=user_id, message="Hello", reply_token=reply_token))
        session.post.assert_not_called()

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("LINE_CHANNEL_ACCESS_TOKEN", "env-token")
        assert LineReplyClient(session=MagicMock()).access_token == "env-token"

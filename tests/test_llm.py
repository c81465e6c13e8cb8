"""Tests for the Gemini generation client and failure tagging."""

from unittest.mock import MagicMock

import pytest

from src.agent.llm import (
    FailureKind,
    GenerationClient,
    GenerationFailure,
    GenerationRequest,
    classify_failure,
    get_client,
)


class _GenaiStyleError(Exception):
    """Shaped like google.genai.errors.APIError: int code, str status."""

    def __init__(self, code, status):
        super().__init__(f"{code} {status}")
        self.code = code
        self.status = status


class _OpenAIStyleError(Exception):
    """Shaped like an OpenAI error: status_code plus string code."""

    def __init__(self, status_code, code):
        super().__init__(code)
        self.status_code = status_code
        self.code = code


def _mock_genai(text="ok"):
    response = MagicMock()
    response.text = text
    genai_client = MagicMock()
    genai_client.models.generate_content.return_value = response
    return genai_client


class TestClassifyFailure:

    def test_status_429_is_quota(self):
        failure = classify_failure(_GenaiStyleError(429, "RESOURCE_EXHAUSTED"))
        assert failure.kind is FailureKind.QUOTA_EXCEEDED
        assert failure.status_code == 429

    def test_insufficient_quota_code_is_quota(self):
        failure = classify_failure(_OpenAIStyleError(403, "insufficient_quota"))
        assert failure.kind is FailureKind.QUOTA_EXCEEDED
        assert failure.error_code == "insufficient_quota"

    def test_resource_exhausted_status_is_quota(self):
        failure = classify_failure(_GenaiStyleError(None, "RESOURCE_EXHAUSTED"))
        assert failure.is_quota

    def test_server_error_is_other(self):
        failure = classify_failure(_GenaiStyleError(500, "INTERNAL"))
        assert failure.kind is FailureKind.OTHER
        assert failure.status_code == 500

    def test_plain_exception_is_other(self):
        failure = classify_failure(ConnectionError("boom"))
        assert failure.kind is FailureKind.OTHER
        assert failure.status_code is None
        assert isinstance(failure.cause, ConnectionError)

    def test_existing_failure_passes_through(self):
        original = GenerationFailure(FailureKind.QUOTA_EXCEEDED, status_code=429)
        assert classify_failure(original) is original


class TestGenerationClient:

    def test_returns_response_text(self):
        client = GenerationClient(client=_mock_genai("Hello there"))
        text = client.generate(GenerationRequest("system", "user", temperature=0.7))
        assert text == "Hello there"

    def test_none_text_becomes_empty_string(self):
        client = GenerationClient(client=_mock_genai(None))
        assert client.generate(GenerationRequest("system", "user", temperature=0.7)) == ""

    def test_passes_sampling_settings(self):
        genai_client = _mock_genai()
        client = GenerationClient(client=genai_client, model="test-model")
        client.generate(GenerationRequest(
            system_directive="be brief",
            user_content="hi",
            temperature=0.1,
            max_output_tokens=50,
            json_mode=True,
        ))

        kwargs = genai_client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"
        config = kwargs["config"]
        assert config.system_instruction == "be brief"
        assert config.temperature == 0.1
        assert config.max_output_tokens == 50
        assert config.response_mime_type == "application/json"
        assert kwargs["contents"][0].parts[0].text == "hi"

    def test_text_mode_has_no_mime_type(self):
        genai_client = _mock_genai()
        GenerationClient(client=genai_client).generate(GenerationRequest("s", "u", temperature=0.7))
        config = genai_client.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type is None

    def test_upstream_error_is_wrapped(self):
        genai_client = MagicMock()
        genai_client.models.generate_content.side_effect = _GenaiStyleError(429, "RESOURCE_EXHAUSTED")
        client = GenerationClient(client=genai_client)

        with pytest.raises(GenerationFailure) as exc_info:
            client.generate(GenerationRequest("s", "u", temperature=0.7))
        assert exc_info.value.kind is FailureKind.QUOTA_EXCEEDED

    def test_missing_api_key_surfaces_as_failure(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        client = GenerationClient()

        with pytest.raises(GenerationFailure) as exc_info:
            client.generate(GenerationRequest("s", "u", temperature=0.7))
        assert exc_info.value.kind is FailureKind.OTHER


class TestGetClient:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            get_client()

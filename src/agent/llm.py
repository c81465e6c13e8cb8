"""LLM backend for the health companion using Gemini via the google-genai SDK.

Every generator talks to the model through GenerationClient. Any SDK error is
wrapped in GenerationFailure, tagged QUOTA_EXCEEDED or OTHER, so that callers
only ever have to branch on the tag.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum

from google import genai

logger = logging.getLogger(__name__)

MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")

QUOTA_STATUS_CODE = 429
QUOTA_ERROR_CODES = ("insufficient_quota", "RESOURCE_EXHAUSTED")


def get_client() -> genai.Client:
    """Create a Gemini client using the API key from environment."""
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise ValueError("GEMINI_API_KEY not set in environment")
    return genai.Client(api_key=api_key)


# -- Failures ----------------------------------------------------------------

class FailureKind(Enum):
    QUOTA_EXCEEDED = "quota_exceeded"
    OTHER = "other"


class GenerationFailure(Exception):
    """A failed generation call, tagged for the degradation policy."""

    def __init__(
        self,
        kind: FailureKind,
        status_code: int | None = None,
        error_code: str | None = None,
        cause: BaseException | None = None,
    ):
        self.kind = kind
        self.status_code = status_code
        self.error_code = error_code
        self.cause = cause
        super().__init__(f"{kind.value} (status={status_code}, code={error_code}): {cause}")

    @property
    def is_quota(self) -> bool:
        return self.kind is FailureKind.QUOTA_EXCEEDED


def classify_failure(exc: BaseException) -> GenerationFailure:
    """Tag an arbitrary upstream exception as quota exhaustion or other.

    google-genai's APIError carries an integer ``code`` and a string
    ``status``; OpenAI-style errors carry ``status_code`` and a string
    ``code``. Both shapes are read.
    """
    if isinstance(exc, GenerationFailure):
        return exc

    code = getattr(exc, "code", None)
    status_code = code if isinstance(code, int) else getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        status_code = None

    error_code = code if isinstance(code, str) else None
    status = getattr(exc, "status", None)
    if error_code is None and isinstance(status, str):
        error_code = status

    if status_code == QUOTA_STATUS_CODE or error_code in QUOTA_ERROR_CODES:
        kind = FailureKind.QUOTA_EXCEEDED
    else:
        kind = FailureKind.OTHER
    return GenerationFailure(kind, status_code=status_code, error_code=error_code, cause=exc)


# -- Client ------------------------------------------------------------------

@dataclass(frozen=True)
class GenerationRequest:
    system_directive: str
    user_content: str
    temperature: float
    max_output_tokens: int | None = None
    json_mode: bool = False


class GenerationClient:
    """Single request/response round trip against the Gemini API.

    The underlying genai client is created lazily so that constructing a
    pipeline never fails on a missing API key; the failure surfaces on the
    first call, where it is tagged like any other upstream error.
    """

    def __init__(self, client: genai.Client | None = None, model: str = MODEL):
        self._client = client
        self.model = model

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def generate(self, request: GenerationRequest) -> str:
        """Run one completion. Returns "" when the model produced no text.

        Raises GenerationFailure on any upstream error.
        """
        config = genai.types.GenerateContentConfig(
            system_instruction=request.system_directive,
            temperature=request.temperature,
            max_output_tokens=request.max_output_tokens,
            response_mime_type="application/json" if request.json_mode else None,
        )
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[
                    genai.types.Content(
                        role="user",
                        parts=[genai.types.Part(text=request.user_content)],
                    ),
                ],
                config=config,
            )
        except Exception as exc:
            failure = classify_failure(exc)
            logger.warning("Gemini call failed: %s", failure)
            raise failure from exc

        return response.text or ""

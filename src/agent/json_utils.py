"""Utilities for parsing JSON payloads returned by the model.

JSON mode makes the model return a bare object most of the time, but code
fences, leading chatter and trailing commas still show up often enough to
be worth repairing before schema validation.
"""

import json
import re

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text)
        text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def extract_json(text: str | None) -> dict:
    """Extract a JSON object from a model response.

    Tries, in order: the whole text, the slice between the first '{' and the
    last '}', and that slice with trailing commas removed.

    Raises ValueError if no JSON object can be recovered.
    """
    if not text or not text.strip():
        raise ValueError("Model returned an empty response")

    text = strip_code_fences(text)
    candidates = [text]

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        sliced = text[first_brace:last_brace + 1]
        candidates.append(sliced)
        candidates.append(_TRAILING_COMMA.sub(r"\1", sliced))

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value

    raise ValueError(f"Could not extract a JSON object from model response:\n{text[:500]}")

"""Prompt templates: on-disk storage and rendering.

Templates are plain text files in src/tools/prompts/ using str.format
placeholders ({message}, {intents}, {logs}). Literal braces are doubled.
"""

import logging
import os
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(os.environ.get(
    "HEALTH_COMPANION_PROMPTS_DIR",
    Path(__file__).parent / "prompts",
))

CLASSIFY_INTENT = "classify-intent"
ANALYZE_HEALTH = "analyze-health"
USER_ACTIVITY_EXTRACT = "user-activity-extract"

LOG_FIELDS = ("weight", "meal", "workout")


class TemplateUnavailable(Exception):
    """A prompt template could not be loaded or rendered."""

    def __init__(self, template_id: str, cause: BaseException | None = None):
        self.template_id = template_id
        self.cause = cause
        super().__init__(f"Template '{template_id}' unavailable: {cause}")


class TemplateStore:
    """Loads prompt templates by id from a directory of .txt files."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root) if root else PROMPTS_DIR

    def load(self, template_id: str) -> str:
        path = self.root / f"{template_id}.txt"
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to load prompt template %s: %s", path, exc)
            raise TemplateUnavailable(template_id, exc) from exc


# -- Rendering ---------------------------------------------------------------

class _KeepMissing(dict):
    """format_map mapping that leaves unknown placeholders untouched."""

    def __missing__(self, key):
        return "{" + key + "}"


def format_log_line(log: dict) -> str:
    """Render one dated log record: "- 2025-01-08: weight 70kg, meal salad"."""
    parts = [f"{name} {log[name]}" for name in LOG_FIELDS if log.get(name)]
    detail = ", ".join(parts) if parts else "no details recorded"
    return f"- {log.get('date', 'unknown date')}: {detail}"


def _format_value(value) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (list, tuple)):
        if not value:
            return "(none)"
        lines = []
        for item in value:
            if is_dataclass(item) and not isinstance(item, type):
                item = asdict(item)
            if isinstance(item, dict):
                lines.append(format_log_line(item))
            else:
                lines.append(f"- {_format_value(item)}")
        return "\n".join(lines)
    return str(value)


def render_template(template: str, context: dict, template_id: str = "inline") -> str:
    """Fill a template with context. Pure: same inputs, same output.

    Raises TemplateUnavailable when the template text is not a valid format
    string (an unbalanced brace, a positional or indexed field).
    """
    values = _KeepMissing({key: _format_value(value) for key, value in context.items()})
    try:
        return template.format_map(values)
    except (ValueError, IndexError, KeyError, AttributeError, TypeError) as exc:
        logger.error("Failed to render prompt template %s: %s", template_id, exc)
        raise TemplateUnavailable(template_id, exc) from exc

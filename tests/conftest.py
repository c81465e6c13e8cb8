"""Shared test fixtures for the health companion test suite."""

import pytest

from src.tools.templates import ANALYZE_HEALTH, CLASSIFY_INTENT, USER_ACTIVITY_EXTRACT, TemplateStore


@pytest.fixture(autouse=True)
def _default_locale(monkeypatch):
    """Keep fallback language deterministic regardless of the host env."""
    monkeypatch.delenv("HEALTH_COMPANION_LOCALE", raising=False)


@pytest.fixture
def templates():
    return TemplateStore()


@pytest.fixture
def missing_templates(tmp_path):
    return TemplateStore(tmp_path / "no-prompts-here")


@pytest.fixture
def malformed_templates(tmp_path):
    """Templates that load fine but are not valid format strings."""
    root = tmp_path / "broken-prompts"
    root.mkdir()
    (root / f"{CLASSIFY_INTENT}.txt").write_text("Message: {message", encoding="utf-8")
    (root / f"{ANALYZE_HEALTH}.txt").write_text("Logs: {0}\n{logs}", encoding="utf-8")
    (root / f"{USER_ACTIVITY_EXTRACT}.txt").write_text('{"activities": [{message}]', encoding="utf-8")
    return TemplateStore(root)

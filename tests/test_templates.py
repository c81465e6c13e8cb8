"""Tests for prompt template loading and rendering."""

import pytest

from src.agent.models import ActivityRecord, Intent
from src.tools.templates import (
    ANALYZE_HEALTH,
    CLASSIFY_INTENT,
    USER_ACTIVITY_EXTRACT,
    TemplateStore,
    TemplateUnavailable,
    format_log_line,
    render_template,
)


class TestTemplateStore:

    @pytest.mark.parametrize("template_id", [CLASSIFY_INTENT, ANALYZE_HEALTH, USER_ACTIVITY_EXTRACT])
    def test_bundled_templates_load(self, templates, template_id):
        assert templates.load(template_id).strip()

    def test_missing_template_raises(self, missing_templates):
        with pytest.raises(TemplateUnavailable) as exc_info:
            missing_templates.load(CLASSIFY_INTENT)
        assert exc_info.value.template_id == CLASSIFY_INTENT

    def test_custom_root(self, tmp_path):
        (tmp_path / "greeting.txt").write_text("Hi {message}", encoding="utf-8")
        assert TemplateStore(tmp_path).load("greeting") == "Hi {message}"


class TestRenderTemplate:

    def test_fills_message(self):
        assert render_template('Message: "{message}"', {"message": "I ran 5km"}) == 'Message: "I ran 5km"'

    def test_renders_string_list_as_bullets(self):
        rendered = render_template("{intents}", {"intents": ["plan_meal", "plan_workout"]})
        assert rendered == "- plan_meal\n- plan_workout"

    def test_renders_enum_values(self):
        assert render_template("{intents}", {"intents": [Intent.LOG_ACTIVITY]}) == "- log_activity"

    def test_renders_log_records(self):
        logs = [
            ActivityRecord(date="2025-01-08", weight="70kg", workout="30-minute run"),
            {"date": "2025-01-07", "meal": "oatmeal"},
        ]
        rendered = render_template("{logs}", {"logs": logs})
        assert rendered.splitlines() == [
            "- 2025-01-08: weight 70kg, workout 30-minute run",
            "- 2025-01-07: meal oatmeal",
        ]

    def test_empty_list(self):
        assert render_template("{logs}", {"logs": []}) == "(none)"

    def test_unknown_placeholder_left_alone(self):
        assert render_template("{message} {other}", {"message": "hi"}) == "hi {other}"

    def test_braces_in_values_are_not_interpreted(self):
        assert render_template("{message}", {"message": "{weird} {{input}}"}) == "{weird} {{input}}"

    def test_escaped_braces_in_template(self):
        assert render_template('{{"activities": []}} {message}', {"message": "x"}) == '{"activities": []} x'

    @pytest.mark.parametrize("template", ["Message: {message", "{0} {message}", "stray } brace"])
    def test_malformed_template_raises_unavailable(self, template):
        with pytest.raises(TemplateUnavailable) as exc_info:
            render_template(template, {"message": "hi"}, template_id=CLASSIFY_INTENT)
        assert exc_info.value.template_id == CLASSIFY_INTENT
        assert isinstance(exc_info.value.cause, ValueError)

    def test_rendering_is_idempotent(self, templates):
        template = templates.load(CLASSIFY_INTENT)
        context = {"intents": ["plan_meal", "log_activity"], "message": "I ran 5km today"}
        first = render_template(template, context)
        second = render_template(template, context)
        assert first == second
        assert first.encode("utf-8") == second.encode("utf-8")

    def test_extraction_template_keeps_json_example(self, templates):
        rendered = render_template(templates.load(USER_ACTIVITY_EXTRACT), {"message": "salad"})
        assert '{"activities": [' in rendered
        assert '"salad"' in rendered


class TestFormatLogLine:

    def test_entry_without_fields(self):
        assert format_log_line({"date": "2025-01-01"}) == "- 2025-01-01: no details recorded"

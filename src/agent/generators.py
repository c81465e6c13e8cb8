"""Content generators: planner, habit analyzer, activity extractor, open chat.

All four share the Generator base: build a prompt, make one generation call
with the variant's directive and sampling settings, post-process the text.
Any failure along the way is turned into fallback text by the degradation
policy, so every call returns a non-empty reply.
"""

import logging
from dataclasses import dataclass

from src.agent.fallbacks import CallSite, fallback_message, tools_unavailable_message
from src.agent.json_utils import extract_json
from src.agent.llm import FailureKind, GenerationClient, GenerationRequest, classify_failure
from src.agent.models import ActivityBatch, Intent
from src.agent.prompts import (
    CHAT_SYSTEM_PROMPT,
    EXTRACTION_SYSTEM_PROMPT,
    HEALTH_COACH_SYSTEM_PROMPT,
    MEAL_PLANNER_SYSTEM_PROMPT,
    WORKOUT_PLANNER_SYSTEM_PROMPT,
    build_meal_plan_prompt,
    build_workout_plan_prompt,
)
from src.tools.activity_store import ActivitySource, StaticActivitySource, format_summary, summarize_logs
from src.tools.templates import (
    ANALYZE_HEALTH,
    USER_ACTIVITY_EXTRACT,
    TemplateStore,
    TemplateUnavailable,
    render_template,
)

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "weight": "🏋️ Weight",
    "meal": "🍽️ Meal",
    "workout": "💪 Workout",
}


# -- Results -----------------------------------------------------------------

@dataclass
class GenerationResult:
    """Reply text plus how it was produced.

    reason is None on success, otherwise one of "quota_exceeded", "other",
    "invalid_output" or "template_unavailable".
    """
    text: str
    degraded: bool = False
    reason: str | None = None


@dataclass
class ExtractionResult(GenerationResult):
    batch: ActivityBatch | None = None


# -- Base --------------------------------------------------------------------

class Generator:
    """One generation call with a fixed persona and sampling profile."""

    site: CallSite = CallSite.CHAT
    system_prompt: str = ""
    temperature: float = 0.7
    max_output_tokens: int | None = None
    json_mode: bool = False
    empty_reply: str = ""

    def __init__(
        self,
        client: GenerationClient,
        templates: TemplateStore | None = None,
        locale: str | None = None,
    ):
        self.client = client
        self.templates = templates or TemplateStore()
        self.locale = locale

    def complete(self, user_content: str, system_prompt: str | None = None) -> str:
        """Run the generation call. Raises GenerationFailure."""
        return self.client.generate(GenerationRequest(
            system_directive=system_prompt or self.system_prompt,
            user_content=user_content,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            json_mode=self.json_mode,
        ))

    def degrade(
        self,
        kind: FailureKind,
        site: CallSite | None = None,
        message: str = "",
        reason: str | None = None,
    ) -> GenerationResult:
        return GenerationResult(
            text=fallback_message(site or self.site, kind, message=message, locale=self.locale),
            degraded=True,
            reason=reason or kind.value,
        )

    def tools_unavailable(self) -> GenerationResult:
        return GenerationResult(
            text=tools_unavailable_message(self.site, locale=self.locale),
            degraded=True,
            reason="template_unavailable",
        )

    def generate_text(
        self,
        user_content: str,
        user_id: str = "",
        message: str = "",
        site: CallSite | None = None,
        system_prompt: str | None = None,
    ) -> GenerationResult:
        """Free-text generation shared by the planner, analyzer and chat."""
        site = site or self.site
        try:
            text = self.complete(user_content, system_prompt=system_prompt)
        except Exception as exc:
            failure = classify_failure(exc)
            logger.error(
                "%s generation failed for %s: %s", site.value, user_id or "unknown user", failure,
            )
            return self.degrade(failure.kind, site=site, message=message)

        if not text or not text.strip():
            logger.warning("%s generation returned no text for %s", site.value, user_id)
            return GenerationResult(text=self.empty_reply)

        logger.info("%s reply generated for %s (%d chars)", site.value, user_id, len(text))
        return GenerationResult(text=text)


# -- Planner -----------------------------------------------------------------

class Planner(Generator):
    site = CallSite.PLAN_MEAL
    temperature = 0.7
    max_output_tokens = 600
    empty_reply = "Sorry, I couldn't generate a plan right now. Please try again."

    def plan(self, intent: Intent, message: str, user_id: str = "") -> GenerationResult:
        """Generate a meal or workout plan for the request in message."""
        if intent is Intent.PLAN_MEAL:
            site = CallSite.PLAN_MEAL
            system_prompt = MEAL_PLANNER_SYSTEM_PROMPT
            user_content = build_meal_plan_prompt(message)
        elif intent is Intent.PLAN_WORKOUT:
            site = CallSite.PLAN_WORKOUT
            system_prompt = WORKOUT_PLANNER_SYSTEM_PROMPT
            user_content = build_workout_plan_prompt(message)
        else:
            raise ValueError(f"Planner cannot handle intent {intent!r}")

        logger.info("Planner request from %s: %s (%s)", user_id, message, intent.value)
        return self.generate_text(
            user_content,
            user_id=user_id,
            message=message,
            site=site,
            system_prompt=system_prompt,
        )


# -- Habit analyzer ----------------------------------------------------------

class HabitAnalyzer(Generator):
    site = CallSite.ANALYZE
    system_prompt = HEALTH_COACH_SYSTEM_PROMPT
    temperature = 0.7
    max_output_tokens = 700
    empty_reply = (
        "Unable to generate a detailed analysis at this time. Please ensure you have "
        "some activity logs recorded and try again."
    )

    def __init__(self, client, templates=None, locale=None, activities: ActivitySource | None = None):
        super().__init__(client, templates, locale)
        self.activities = activities or StaticActivitySource()

    def build_prompt(self, user_id: str) -> str:
        """Render recent logs into the analysis template. Raises TemplateUnavailable."""
        template = self.templates.load(ANALYZE_HEALTH)
        logs = self.activities.recent_logs(user_id)
        return render_template(template, {
            "logs": logs,
            "summary": format_summary(summarize_logs(logs)),
        }, template_id=ANALYZE_HEALTH)

    def analyze(self, user_id: str) -> GenerationResult:
        logger.info("Health analysis request received for %s", user_id)
        try:
            prompt = self.build_prompt(user_id)
        except TemplateUnavailable:
            return self.tools_unavailable()
        except Exception:
            logger.exception("Could not read activity logs for %s", user_id)
            return self.degrade(FailureKind.OTHER)
        return self.generate_text(prompt, user_id=user_id)


# -- Activity extractor ------------------------------------------------------

def format_confirmation(batch: ActivityBatch) -> str:
    """Numbered summary of a logged batch, one line per entry in batch order."""
    lines = []
    for index, entry in enumerate(batch, start=1):
        parts = [f"{FIELD_LABELS[name]}: {value}" for name, value in entry.fields()]
        lines.append(f"{index}. {', '.join(parts)}")

    return (
        f"✅ Activity logged successfully! I recorded {len(batch)} activities:\n\n"
        + "\n".join(lines)
        + "\n\nKeep up the great work! 💪"
    )


class ActivityExtractor(Generator):
    site = CallSite.EXTRACT
    system_prompt = EXTRACTION_SYSTEM_PROMPT
    temperature = 0.1
    json_mode = True

    def build_prompt(self, message: str) -> str:
        template = self.templates.load(USER_ACTIVITY_EXTRACT)
        return render_template(template, {"message": message}, template_id=USER_ACTIVITY_EXTRACT)

    def parse(self, text: str) -> ActivityBatch:
        """Parse and validate a JSON payload. Raises ValueError."""
        return ActivityBatch.from_payload(extract_json(text))

    def extract(self, message: str, user_id: str = "") -> ExtractionResult:
        try:
            prompt = self.build_prompt(message)
        except TemplateUnavailable:
            result = self.tools_unavailable()
            return ExtractionResult(text=result.text, degraded=True, reason=result.reason)

        try:
            raw = self.complete(prompt)
        except Exception as exc:
            failure = classify_failure(exc)
            logger.error("Activity extraction failed for %s: %s", user_id, failure)
            result = self.degrade(failure.kind, message=message)
            return ExtractionResult(text=result.text, degraded=True, reason=result.reason)

        try:
            batch = self.parse(raw)
        except ValueError as exc:
            # Reported to the user like any other generation failure.
            logger.error("Extracted activities failed validation for %s: %s", user_id, exc)
            result = self.degrade(FailureKind.OTHER, message=message, reason="invalid_output")
            return ExtractionResult(text=result.text, degraded=True, reason=result.reason)

        logger.info("Extracted %d activities for %s from %r", len(batch), user_id, message)
        return ExtractionResult(text=format_confirmation(batch), batch=batch)


# -- Open chat ---------------------------------------------------------------

class OpenChat(Generator):
    site = CallSite.CHAT
    system_prompt = CHAT_SYSTEM_PROMPT
    temperature = 0.7
    max_output_tokens = 400
    empty_reply = (
        "I'm here to help with your health journey! Feel free to ask me about nutrition, "
        "exercise, or wellness tips. 💪"
    )

    def chat(self, message: str, user_id: str = "") -> GenerationResult:
        logger.info("Health chat request received from %s", user_id)
        return self.generate_text(message, user_id=user_id, message=message)

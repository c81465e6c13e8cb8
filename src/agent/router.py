"""Intent routing: classify an inbound message and pick its generator.

Intents:
    plan_meal     : asks for a meal plan or food suggestions
    plan_workout  : asks for a workout or exercise plan
    log_activity  : reports weight, a meal eaten, or exercise done
    analyze_habits: asks for an analysis of recent habits
    chat          : anything else (the default)

Classification never fails from the caller's point of view: a missing
template, an upstream error, or an unrecognized label all resolve to chat.
"""

import logging

from src.agent.llm import GenerationClient, GenerationRequest, classify_failure
from src.agent.models import CLASSIFIABLE_INTENTS, Intent
from src.agent.prompts import CLASSIFIER_SYSTEM_PROMPT
from src.tools.templates import CLASSIFY_INTENT, TemplateStore, TemplateUnavailable, render_template

logger = logging.getLogger(__name__)

CLASSIFIER_TEMPERATURE = 0.1  # near-deterministic labels
CLASSIFIER_MAX_TOKENS = 50
MAX_MESSAGE_CHARS = 2000

# Downstream topic for each intent
ROUTE_TOPICS = {
    Intent.PLAN_MEAL: "planner-request",
    Intent.PLAN_WORKOUT: "planner-request",
    Intent.LOG_ACTIVITY: "user-activity-extract",
    Intent.ANALYZE_HABITS: "analyze-user-habits",
    Intent.CHAT: "health-chat-message",
}


def build_classification_prompt(text: str, templates: TemplateStore) -> str:
    """Render the classification prompt. Raises TemplateUnavailable."""
    template = templates.load(CLASSIFY_INTENT)
    return render_template(template, {
        "intents": [intent.value for intent in CLASSIFIABLE_INTENTS],
        "message": text[:MAX_MESSAGE_CHARS],
    }, template_id=CLASSIFY_INTENT)


def classify_intent(text: str | None, client: GenerationClient, templates: TemplateStore) -> Intent:
    """Classify a message into one Intent. Falls back to Intent.CHAT on any failure."""
    if not text or not text.strip():
        return Intent.CHAT

    try:
        prompt = build_classification_prompt(text, templates)
    except TemplateUnavailable:
        logger.error("Classification template unavailable, routing to chat")
        return Intent.CHAT

    try:
        label = client.generate(GenerationRequest(
            system_directive=CLASSIFIER_SYSTEM_PROMPT,
            user_content=prompt,
            temperature=CLASSIFIER_TEMPERATURE,
            max_output_tokens=CLASSIFIER_MAX_TOKENS,
        ))
    except Exception as exc:
        failure = classify_failure(exc)
        logger.error("Intent classification failed (%s), routing to chat", failure.kind.value)
        return Intent.CHAT

    intent = Intent.parse(label)
    if intent is Intent.CHAT and (label or "").strip() != Intent.CHAT.value:
        logger.info("Unrecognized intent label %r, routing to chat", label)
    return intent


def route_topic(intent: Intent) -> str:
    return ROUTE_TOPICS.get(intent, ROUTE_TOPICS[Intent.CHAT])

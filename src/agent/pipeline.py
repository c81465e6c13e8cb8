"""Event router: runs one inbound message through classify → generate → send.

Each stage is a handler subscribed to a named topic on an EventBus. A
handler does its work and emits the result to the next topic; the chain
ends on the send topic. The flow per message is:

    message-received
        → planner-request | user-activity-extract | analyze-user-habits | health-chat-message
            → user-activity-log (0..N, extractor only)
            → send-line-message-request (exactly 1)

Every message gets its own bus, so concurrent messages share nothing but
the (stateless) collaborators. The pipeline state moves
RECEIVED → CLASSIFIED → GENERATING → COMPLETED | DEGRADED, or straight to
SKIPPED for non-text input.
"""

import logging
import queue
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from src.agent.fallbacks import CallSite, env_locale, fallback_message
from src.agent.generators import ActivityExtractor, GenerationResult, HabitAnalyzer, OpenChat, Planner
from src.agent.llm import FailureKind, GenerationClient
from src.agent.models import ActivityLogEvent, InboundMessage, Intent, OutboundReply
from src.agent.router import classify_intent, route_topic
from src.tools.activity_store import ActivitySource
from src.tools.templates import TemplateStore

logger = logging.getLogger(__name__)

# -- Topics ------------------------------------------------------------------

MESSAGE_RECEIVED = "message-received"
PLANNER_REQUEST = "planner-request"
ACTIVITY_EXTRACT = "user-activity-extract"
ANALYZE_HABITS = "analyze-user-habits"
HEALTH_CHAT = "health-chat-message"
ACTIVITY_LOG = "user-activity-log"
SEND_MESSAGE = "send-line-message-request"

# Call site used when a stage dies without producing a reply
INTENT_CALL_SITES = {
    Intent.PLAN_MEAL: CallSite.PLAN_MEAL,
    Intent.PLAN_WORKOUT: CallSite.PLAN_WORKOUT,
    Intent.LOG_ACTIVITY: CallSite.EXTRACT,
    Intent.ANALYZE_HABITS: CallSite.ANALYZE,
    Intent.CHAT: CallSite.CHAT,
}

# -- Event bus ---------------------------------------------------------------

@dataclass
class Event:
    topic: str
    data: dict


Handler = Callable[[dict, "EventBus"], None]


class EventBus:
    """In-process topic bus with a FIFO queue.

    emit() only enqueues; drain() delivers events in emission order until
    the queue is empty. A failing handler is logged and the drain goes on.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = {}
        self._queue: "queue.Queue[Event]" = queue.Queue()
        self.history: list[Event] = []

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._subscribers.setdefault(topic, []).append(handler)

    def emit(self, topic: str, data: dict) -> None:
        self._queue.put(Event(topic=topic, data=dict(data)))

    def drain(self, max_events: int | None = None) -> int:
        """Deliver queued events. Returns the number delivered.

        Without max_events the queue is drained to empty. With it, delivery
        stops after that many events and the rest stay queued.
        """
        delivered = 0
        while max_events is None or delivered < max_events:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break

            delivered += 1
            self.history.append(event)
            handlers = self._subscribers.get(event.topic, [])
            if not handlers:
                logger.debug("No subscriber for topic %s", event.topic)
            for handler in handlers:
                try:
                    handler(event.data, self)
                except Exception:
                    logger.exception("Handler for %s failed", event.topic)

        if not self._queue.empty():
            logger.warning("Event limit %d reached, %d event(s) left queued", max_events, self._queue.qsize())
        return delivered


# -- Pipeline ----------------------------------------------------------------

class PipelineState(Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    GENERATING = "generating"
    COMPLETED = "completed"
    DEGRADED = "degraded"
    SKIPPED = "skipped"


@dataclass
class PipelineRun:
    """Everything that happened to one inbound message."""
    message: InboundMessage
    state: PipelineState = PipelineState.RECEIVED
    intent: Intent | None = None
    replies: list[OutboundReply] = field(default_factory=list)
    log_events: list[ActivityLogEvent] = field(default_factory=list)
    state_history: list[dict] = field(default_factory=list)

    def transition(self, new_state: PipelineState) -> None:
        self.state_history.append({
            "from": self.state.value,
            "to": new_state.value,
            "at": datetime.now().isoformat(timespec="seconds"),
        })
        self.state = new_state

    @property
    def reply(self) -> OutboundReply | None:
        return self.replies[0] if self.replies else None


class HealthCompanion:
    """Wires the classifier and generators together on a per-message bus.

    Usage:
        companion = HealthCompanion(deliver=line_client.send)
        run = companion.handle(message)
        print(run.reply.message)
    """

    def __init__(
        self,
        client: GenerationClient | None = None,
        templates: TemplateStore | None = None,
        activities: ActivitySource | None = None,
        deliver: Callable[[OutboundReply], object] | None = None,
        log_sink: Callable[[ActivityLogEvent], object] | None = None,
        locale: str | None = None,
    ):
        self.client = client or GenerationClient()
        self.templates = templates or TemplateStore()
        self.locale = locale or env_locale()
        self.deliver = deliver
        self.log_sink = log_sink

        self.planner = Planner(self.client, self.templates, self.locale)
        self.analyzer = HabitAnalyzer(self.client, self.templates, self.locale, activities=activities)
        self.extractor = ActivityExtractor(self.client, self.templates, self.locale)
        self.chat = OpenChat(self.client, self.templates, self.locale)

    # -- Public API ----------------------------------------------------------

    def handle(self, message: InboundMessage) -> PipelineRun:
        """Process one message to completion. Never raises."""
        run = PipelineRun(message=message)

        if not message.is_text:
            logger.info(
                "Skipping non-text message for intent classification (user=%s, type=%s)",
                message.user_id, message.message_type,
            )
            run.transition(PipelineState.SKIPPED)
            return run

        bus = self._build_bus(run)
        bus.emit(MESSAGE_RECEIVED, {
            "user_id": message.user_id,
            "text": message.text,
            "reply_token": message.reply_token,
        })
        bus.drain()

        if not run.replies:
            self._send_last_resort(run, bus)
        return run

    def handle_many(self, messages: list[InboundMessage], max_workers: int = 4) -> list[PipelineRun]:
        """Process independent messages concurrently. Results keep input order."""
        if not messages:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(self.handle, messages))

    # -- Wiring --------------------------------------------------------------

    def _build_bus(self, run: PipelineRun) -> EventBus:
        bus = EventBus()
        bus.subscribe(MESSAGE_RECEIVED, lambda data, b: self._on_message_received(run, data, b))
        bus.subscribe(PLANNER_REQUEST, lambda data, b: self._on_planner_request(run, data, b))
        bus.subscribe(ACTIVITY_EXTRACT, lambda data, b: self._on_activity_extract(run, data, b))
        bus.subscribe(ANALYZE_HABITS, lambda data, b: self._on_analyze_habits(run, data, b))
        bus.subscribe(HEALTH_CHAT, lambda data, b: self._on_health_chat(run, data, b))
        bus.subscribe(ACTIVITY_LOG, lambda data, b: self._on_activity_log(run, data, b))
        bus.subscribe(SEND_MESSAGE, lambda data, b: self._on_send(run, data, b))
        return bus

    # -- Stages --------------------------------------------------------------

    def _on_message_received(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        intent = classify_intent(data["text"], self.client, self.templates)
        run.intent = intent
        run.transition(PipelineState.CLASSIFIED)
        logger.info("Intent classified for %s: %s", data["user_id"], intent.value)

        payload = {"user_id": data["user_id"], "reply_token": data["reply_token"]}
        if intent is not Intent.ANALYZE_HABITS:
            payload["message"] = data["text"]
        if intent in (Intent.PLAN_MEAL, Intent.PLAN_WORKOUT):
            payload["intent"] = intent.value
        bus.emit(route_topic(intent), payload)

    def _on_planner_request(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        run.transition(PipelineState.GENERATING)
        result = self.planner.plan(Intent(data["intent"]), data["message"], user_id=data["user_id"])
        self._finish(run, result, data, bus)

    def _on_activity_extract(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        run.transition(PipelineState.GENERATING)
        result = self.extractor.extract(data["message"], user_id=data["user_id"])
        if result.batch is not None:
            for entry in result.batch:
                event = ActivityLogEvent.from_entry(entry, data["user_id"], data["reply_token"])
                bus.emit(ACTIVITY_LOG, event.to_dict())
            logger.info("Emitted %d activity log(s) for user %s", len(result.batch), data["user_id"])
        self._finish(run, result, data, bus)

    def _on_analyze_habits(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        run.transition(PipelineState.GENERATING)
        result = self.analyzer.analyze(data["user_id"])
        self._finish(run, result, data, bus)

    def _on_health_chat(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        run.transition(PipelineState.GENERATING)
        result = self.chat.chat(data["message"], user_id=data["user_id"])
        self._finish(run, result, data, bus)

    def _finish(self, run: PipelineRun, result: GenerationResult, data: dict, bus: EventBus) -> None:
        run.transition(PipelineState.DEGRADED if result.degraded else PipelineState.COMPLETED)
        bus.emit(SEND_MESSAGE, {
            "user_id": data["user_id"],
            "message": result.text,
            "reply_token": data["reply_token"],
        })

    # -- Sinks ---------------------------------------------------------------

    def _on_activity_log(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        event = ActivityLogEvent(**data)
        run.log_events.append(event)
        if self.log_sink is None:
            return
        try:
            self.log_sink(event)
        except Exception:
            logger.exception("Activity log sink failed for %s", event.user_id)

    def _on_send(self, run: PipelineRun, data: dict, bus: EventBus) -> None:
        reply = OutboundReply(**data)
        run.replies.append(reply)
        if self.deliver is None:
            return
        try:
            self.deliver(reply)
        except Exception:
            logger.exception("Reply delivery failed for %s", reply.user_id)

    def _send_last_resort(self, run: PipelineRun, bus: EventBus) -> None:
        """Reply with the generic fallback when a stage died without one."""
        site = INTENT_CALL_SITES[run.intent or Intent.CHAT]
        logger.error("No reply produced for %s at stage %s", run.message.user_id, run.state.value)
        if run.state is not PipelineState.DEGRADED:
            run.transition(PipelineState.DEGRADED)
        bus.emit(SEND_MESSAGE, {
            "user_id": run.message.user_id,
            "message": fallback_message(site, FailureKind.OTHER, message=run.message.text or "", locale=self.locale),
            "reply_token": run.message.reply_token,
        })
        bus.drain()

"""Transient data model for one message's trip through the pipeline.

Nothing here is persisted: every object lives for the duration of a single
inbound message and is discarded once the reply has been handed off.
"""

from dataclasses import dataclass
from enum import Enum

SOURCE_TYPES = ("user", "group", "room")

ACTIVITY_FIELDS = ("weight", "meal", "workout")


class Intent(str, Enum):
    PLAN_MEAL = "plan_meal"
    PLAN_WORKOUT = "plan_workout"
    LOG_ACTIVITY = "log_activity"
    ANALYZE_HABITS = "analyze_habits"
    CHAT = "chat"

    @classmethod
    def parse(cls, label: str | None) -> "Intent":
        """Map a raw classifier label onto the closed set, defaulting to CHAT."""
        if not label:
            return cls.CHAT
        label = label.strip().strip("\"'`.").strip().lower()
        for intent in CLASSIFIABLE_INTENTS:
            if intent.value == label:
                return intent
        return cls.CHAT


# The vocabulary offered to the classifier. CHAT is the implicit default.
CLASSIFIABLE_INTENTS = (
    Intent.PLAN_MEAL,
    Intent.PLAN_WORKOUT,
    Intent.LOG_ACTIVITY,
    Intent.ANALYZE_HABITS,
)


@dataclass(frozen=True)
class InboundMessage:
    """A normalized chat-platform message."""
    user_id: str
    text: str | None
    reply_token: str
    timestamp: int
    source_type: str = "user"
    message_type: str = "text"
    image_id: str | None = None

    @property
    def is_text(self) -> bool:
        return self.message_type == "text" and bool(self.text)


@dataclass(frozen=True)
class ActivityEntry:
    weight: str | None = None
    meal: str | None = None
    workout: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ActivityEntry":
        """Build an entry from one extracted JSON object.

        Unknown keys are ignored. Known keys must hold a string or null.
        Raises ValueError on anything else.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Activity entry must be an object, got {type(data).__name__}")

        values = {}
        for name in ACTIVITY_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Activity field '{name}' must be a string, got {type(value).__name__}")
            values[name] = value
        return cls(**values)

    def fields(self) -> list[tuple[str, str]]:
        """Populated (name, value) pairs in weight, meal, workout order."""
        return [(name, getattr(self, name)) for name in ACTIVITY_FIELDS if getattr(self, name)]


@dataclass(frozen=True)
class ActivityBatch:
    entries: tuple[ActivityEntry, ...]

    @classmethod
    def from_payload(cls, payload: object) -> "ActivityBatch":
        """Validate an extraction payload of the form {"activities": [...]}.

        An empty activities list is a validation failure.
        """
        if not isinstance(payload, dict):
            raise ValueError("Extraction payload must be a JSON object")

        activities = payload.get("activities")
        if not isinstance(activities, list):
            raise ValueError("Extraction payload is missing an 'activities' list")
        if not activities:
            raise ValueError("Extraction payload contains no activities")

        return cls(entries=tuple(ActivityEntry.from_dict(a) for a in activities))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


@dataclass(frozen=True)
class ActivityLogEvent:
    """One record on the log-ingestion topic."""
    user_id: str
    reply_token: str
    weight: str | None = None
    meal: str | None = None
    workout: str | None = None

    @classmethod
    def from_entry(cls, entry: ActivityEntry, user_id: str, reply_token: str) -> "ActivityLogEvent":
        return cls(
            user_id=user_id,
            reply_token=reply_token,
            weight=entry.weight,
            meal=entry.meal,
            workout=entry.workout,
        )

    def to_dict(self) -> dict:
        data = {"user_id": self.user_id, "reply_token": self.reply_token}
        for name in ACTIVITY_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class OutboundReply:
    user_id: str
    message: str
    reply_token: str

    def __post_init__(self):
        if not self.message:
            raise ValueError("Outbound reply message must not be empty")


@dataclass
class ActivityRecord:
    """A dated activity log as returned by an ActivitySource."""
    date: str
    weight: str | None = None
    meal: str | None = None
    workout: str | None = None

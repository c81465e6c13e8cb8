"""Activity source: read access to a user's recent health logs.

The habit analyzer depends only on the ActivitySource interface. No log
store exists yet, so the default source serves a fixed sample history for
every user.
"""

import logging

from src.agent.models import ActivityRecord

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 7

SAMPLE_LOGS = [
    ActivityRecord(date="2025-01-08", weight="70kg", meal="chicken salad", workout="30-minute run"),
    ActivityRecord(date="2025-01-07", weight="70.2kg", meal="oatmeal with berries", workout="yoga session"),
    ActivityRecord(date="2025-01-06", meal="grilled salmon", workout="weight training"),
    ActivityRecord(date="2025-01-05", weight="70.5kg", meal="quinoa bowl", workout="cycling"),
    ActivityRecord(date="2025-01-04", meal="protein smoothie", workout="swimming"),
]


class ActivitySource:
    """Interface for anything that can list a user's recent logs."""

    def recent_logs(self, user_id: str, limit: int = DEFAULT_LIMIT) -> list[ActivityRecord]:
        raise NotImplementedError


class StaticActivitySource(ActivitySource):
    """Serves the same in-memory records to every user, newest first."""

    def __init__(self, records: list[ActivityRecord] | None = None):
        self._records = list(SAMPLE_LOGS if records is None else records)

    def recent_logs(self, user_id: str, limit: int = DEFAULT_LIMIT) -> list[ActivityRecord]:
        records = sorted(self._records, key=lambda r: r.date, reverse=True)[:limit]
        logger.debug("Serving %d static activity logs for %s", len(records), user_id)
        return records


def summarize_logs(records: list[ActivityRecord]) -> dict:
    """Count how often each kind of activity was logged.

    Returns:
        dict with total_days, weight_days, meal_days, workout_days,
        latest_weight and first/last dates (None when no records).
    """
    if not records:
        return {
            "total_days": 0,
            "weight_days": 0,
            "meal_days": 0,
            "workout_days": 0,
            "latest_weight": None,
            "first_date": None,
            "last_date": None,
        }

    ordered = sorted(records, key=lambda r: r.date)
    weights = [r.weight for r in ordered if r.weight]

    return {
        "total_days": len({r.date for r in ordered}),
        "weight_days": sum(1 for r in ordered if r.weight),
        "meal_days": sum(1 for r in ordered if r.meal),
        "workout_days": sum(1 for r in ordered if r.workout),
        "latest_weight": weights[-1] if weights else None,
        "first_date": ordered[0].date,
        "last_date": ordered[-1].date,
    }


def format_summary(summary: dict) -> str:
    """One-line human summary used in the analysis prompt."""
    if not summary["total_days"]:
        return "No activity has been logged yet."
    text = (
        f"{summary['total_days']} days logged between {summary['first_date']} and "
        f"{summary['last_date']}: weight on {summary['weight_days']}, meals on "
        f"{summary['meal_days']}, workouts on {summary['workout_days']}."
    )
    if summary["latest_weight"]:
        text += f" Latest weight: {summary['latest_weight']}."
    return text

"""Static constants and mappings for the workout tracker."""

from __future__ import annotations

STORE_BASE = "https://firestore.googleapis.com/v1"
DEFAULT_DATABASE = "(default)"

DAYS_COLLECTION = "workoutDays"
LOGS_COLLECTION = "workoutLogs"

TIMEFRAMES = ("daily", "weekly", "monthly", "all")

EXERCISE_KINDS = ("sets", "time")

DEFAULT_TICK_INTERVAL = 1.0

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

SESSION_ACTIONS = {
    "s": "start set",
    "c": "complete set",
    "r": "rest",
    "k": "skip exercise",
    "p": "pause/resume",
    "f": "finish workout",
    "q": "abandon workout",
    "?": "status",
}

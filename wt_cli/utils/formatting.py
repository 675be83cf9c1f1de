"""Formatting helpers used by session display and reports."""

from __future__ import annotations

import math
from typing import Optional

from wt_cli.core.models import ExerciseDefinition, ExerciseKind
from wt_cli.utils.text import plural


def _split(seconds: Optional[float]) -> tuple[int, int, int]:
    total = max(int(math.floor(float(seconds or 0))), 0)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return h, m, s


def format_time(seconds: Optional[float]) -> str:
    """Format elapsed seconds as MM:SS (minutes are not wrapped into hours)."""
    h, m, s = _split(seconds)
    return f"{h * 60 + m:02d}:{s:02d}"


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as '1h 2m 5s' or '2m 5s'."""
    h, m, s = _split(seconds)
    if h:
        return f"{h}h {m}m {s}s"
    return f"{m}m {s}s"


def format_target(exercise: ExerciseDefinition) -> str:
    """Human readable target for an exercise definition."""
    if exercise.kind is ExerciseKind.SETS:
        return plural(int(exercise.count or 0), "set")
    return format_time(exercise.duration)


def capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:]

"""Parsing helpers for workout day definitions."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from wt_cli.core.models import ExerciseDefinition, ExerciseKind, WorkoutDay

_DURATION_RE = re.compile(r"^(?:(\d+):)?(\d+):(\d{2})$")
_SPEC_RE = re.compile(r"^(?P<name>.+?):(?P<kind>sets|time):(?P<target>.+)$", re.IGNORECASE)


def parse_minutes(value: str) -> float:
    """Parse minutes ('2', '1.5') or a clock value ('1:30', '1:00:00') into seconds."""
    raw = value.strip()
    match = _DURATION_RE.match(raw)
    if match:
        hours, minutes, seconds = match.groups()
        return float(int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds))
    try:
        minutes_value = float(raw)
    except ValueError:
        raise ValueError(f"Invalid duration '{value}'. Use minutes (e.g. 2) or MM:SS.") from None
    return minutes_value * 60


def build_exercise(name: str, kind: str, count: Optional[int] = None, minutes: Optional[str] = None) -> ExerciseDefinition:
    """Build an exercise from editor inputs; time targets are given in minutes."""
    exercise_kind = ExerciseKind(kind.lower())
    if exercise_kind is ExerciseKind.SETS:
        if count is None:
            raise ValueError("Exercises of kind 'sets' need --count")
        return ExerciseDefinition(name=name, kind=exercise_kind, count=int(count))
    if minutes is None:
        raise ValueError("Exercises of kind 'time' need --minutes")
    return ExerciseDefinition(name=name, kind=exercise_kind, duration=parse_minutes(str(minutes)))


def parse_exercise_spec(value: str) -> ExerciseDefinition:
    """Parse 'Name:sets:N' or 'Name:time:MINUTES' into an exercise."""
    match = _SPEC_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid exercise '{value}'. Expected Name:sets:N or Name:time:MINUTES")
    name = match.group("name").strip()
    kind = match.group("kind").lower()
    target = match.group("target").strip()
    if kind == "sets":
        if not target.isdigit():
            raise ValueError(f"Invalid exercise '{value}': set count must be a whole number")
        return build_exercise(name, kind, count=int(target))
    return build_exercise(name, kind, minutes=target)


def _day_from_payload(payload: Dict[str, Any]) -> WorkoutDay:
    exercises = payload.get("exercises")
    if exercises is None:
        return WorkoutDay.from_dict(payload)

    parsed: List[ExerciseDefinition] = []
    for item in exercises:
        if isinstance(item, str):
            parsed.append(parse_exercise_spec(item))
            continue
        kind = str(item.get("kind") or item.get("type") or "sets")
        parsed.append(
            build_exercise(
                str(item.get("name") or "Exercise"),
                kind,
                count=item.get("count"),
                minutes=str(item["minutes"]) if item.get("minutes") is not None else None,
            )
        )
    return WorkoutDay(name=str(payload.get("name") or "New Day"), exercises=parsed)


def load_day_input(file_path: Path) -> List[WorkoutDay]:
    """Load workout day definition(s) from a JSON or YAML file.

    Each day is either in stored form (``name`` + ``workouts`` with seconds)
    or in editor form (``name`` + ``exercises`` with minutes or ``Name:kind:target`` strings).
    """
    text = file_path.read_text()
    raw_data: Any
    if file_path.suffix.lower() in {".yaml", ".yml"}:
        try:
            raw_data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML: {exc}") from exc
    else:
        raw_data = json.loads(text)

    if isinstance(raw_data, dict) and isinstance(raw_data.get("days"), list):
        raw_data = raw_data["days"]
    if isinstance(raw_data, dict):
        return [_day_from_payload(raw_data)]
    if isinstance(raw_data, list):
        return [_day_from_payload(item) for item in raw_data if isinstance(item, dict)]
    return []

"""Data models shared by the session engine, statistics and persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ExerciseKind(str, Enum):
    SETS = "sets"
    TIME = "time"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_datetime(value: Any) -> datetime:
    """Coerce a stored timestamp (datetime or ISO string) into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ExerciseDefinition:
    """One exercise of a workout day, targeted by set count or by duration."""

    name: str
    kind: ExerciseKind
    count: Optional[int] = None
    duration: Optional[float] = None

    def __post_init__(self) -> None:
        kind = ExerciseKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is ExerciseKind.SETS:
            if not self.count or self.count < 1 or self.duration is not None:
                raise ValueError(f"Exercise '{self.name}' of kind sets needs a positive count only")
        else:
            if not self.duration or self.duration <= 0 or self.count is not None:
                raise ValueError(f"Exercise '{self.name}' of kind time needs a positive duration only")

    @property
    def target(self) -> float:
        return float(self.count if self.kind is ExerciseKind.SETS else self.duration)  # type: ignore[arg-type]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "type": self.kind.value}
        if self.kind is ExerciseKind.SETS:
            payload["count"] = self.count
        else:
            payload["duration"] = self.duration
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExerciseDefinition":
        kind = ExerciseKind(str(data.get("type") or "sets"))
        if kind is ExerciseKind.SETS:
            return cls(name=str(data.get("name", "")), kind=kind, count=int(data["count"]))
        return cls(name=str(data.get("name", "")), kind=kind, duration=float(data["duration"]))


@dataclass
class WorkoutDay:
    """A named, ordered routine of exercises."""

    name: str
    exercises: List[ExerciseDefinition] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "workouts": [exercise.to_dict() for exercise in self.exercises],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], day_id: Optional[str] = None) -> "WorkoutDay":
        return cls(
            name=str(data.get("name") or "Untitled"),
            exercises=[ExerciseDefinition.from_dict(item) for item in data.get("workouts") or []],
            id=day_id or data.get("id"),
        )


@dataclass(frozen=True)
class CompletedSet:
    exercise_name: str
    set_index: int
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.exercise_name, "setNumber": self.set_index, "duration": self.duration}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompletedSet":
        return cls(
            exercise_name=str(data.get("name", "")),
            set_index=int(data.get("setNumber") or 0),
            duration=float(data.get("duration") or 0.0),
        )


@dataclass
class ActiveSession:
    """In-progress workout state, owned by a single ``WorkoutSession``."""

    day: WorkoutDay
    start_time: datetime
    completed_sets: List[CompletedSet] = field(default_factory=list)
    total_rest_time: float = 0.0


@dataclass(frozen=True)
class SessionSummary:
    """Immutable record of one finished workout, as written to history."""

    day_id: Optional[str]
    start_time: datetime
    end_time: datetime
    completed_sets: Tuple[CompletedSet, ...]
    total_rest_time: float
    total_duration: float
    timestamp: datetime
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dayId": self.day_id,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "exercises": [item.to_dict() for item in self.completed_sets],
            "totalRestTime": self.total_rest_time,
            "totalDuration": self.total_duration,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], summary_id: Optional[str] = None) -> "SessionSummary":
        end_time = as_datetime(data["endTime"])
        return cls(
            day_id=data.get("dayId"),
            start_time=as_datetime(data["startTime"]),
            end_time=end_time,
            completed_sets=tuple(CompletedSet.from_dict(item) for item in data.get("exercises") or []),
            total_rest_time=float(data.get("totalRestTime") or 0.0),
            total_duration=float(data.get("totalDuration") or 0.0),
            timestamp=as_datetime(data["timestamp"]) if data.get("timestamp") else end_time,
            id=summary_id or data.get("id"),
        )


@dataclass
class ExerciseAggregate:
    total_sets: int = 0
    total_duration: float = 0.0
    average_set_duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSets": self.total_sets,
            "totalDuration": self.total_duration,
            "averageSetDuration": self.average_set_duration,
        }


@dataclass
class DailyAggregate:
    workouts: int = 0
    total_duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"workouts": self.workouts, "totalDuration": self.total_duration}


@dataclass
class TimeframeStatistics:
    """Summary metrics over the session history of one timeframe."""

    timeframe: str = "all"
    total_workouts: int = 0
    total_time: float = 0.0
    total_rest_time: float = 0.0
    average_workout_duration: float = 0.0
    exercise_stats: Dict[str, ExerciseAggregate] = field(default_factory=dict)
    daily_stats: Dict[str, DailyAggregate] = field(default_factory=dict)
    best_workout: Optional[SessionSummary] = None
    most_frequent_exercise: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeframe": self.timeframe,
            "totalWorkouts": self.total_workouts,
            "totalTime": self.total_time,
            "totalRestTime": self.total_rest_time,
            "averageWorkoutDuration": self.average_workout_duration,
            "exerciseStats": {name: agg.to_dict() for name, agg in self.exercise_stats.items()},
            "dailyStats": {day: agg.to_dict() for day, agg in self.daily_stats.items()},
            "bestWorkout": self.best_workout.to_dict() if self.best_workout else None,
            "mostFrequentExercise": self.most_frequent_exercise,
        }

from __future__ import annotations

import dataclasses
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from typer.testing import CliRunner

from wt_cli.core.models import CompletedSet, ExerciseDefinition, ExerciseKind, SessionSummary, WorkoutDay
from wt_cli.core.repository import PersistenceLoadFailure, PersistenceSaveFailure


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeTask:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class ManualScheduler:
    """Records scheduled ticks instead of starting threads."""

    def __init__(self) -> None:
        self.tasks: List[FakeTask] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTask:
        task = FakeTask(interval, callback)
        self.tasks.append(task)
        return task

    @property
    def running(self) -> List[FakeTask]:
        return [task for task in self.tasks if not task.cancelled]

    def fire_all(self) -> None:
        for task in self.running:
            task.fire()


class InMemoryRepository:
    """Repository double keeping days and logs in dicts."""

    def __init__(self, days: Optional[Dict[str, WorkoutDay]] = None) -> None:
        self.days: Dict[str, WorkoutDay] = dict(days or {})
        self.logs: Dict[str, SessionSummary] = {}
        self.fail_saves = 0
        self.fail_loads = False
        self.save_calls = 0
        self.queries: List[Tuple[datetime, bool]] = []
        self.on_save: Optional[Callable[[SessionSummary], None]] = None

    def list_workout_days(self) -> Dict[str, WorkoutDay]:
        if self.fail_loads:
            raise PersistenceLoadFailure("Failed to load workout days: offline")
        return dict(self.days)

    def get_workout_day(self, day_id: str) -> WorkoutDay:
        if self.fail_loads or day_id not in self.days:
            raise PersistenceLoadFailure(f"Failed to load workout day {day_id}: not found")
        day = self.days[day_id]
        return WorkoutDay(name=day.name, exercises=list(day.exercises), id=day_id)

    def create_workout_day(self, day: WorkoutDay) -> str:
        day_id = f"day-{len(self.days) + 1}"
        self.days[day_id] = WorkoutDay(name=day.name, exercises=list(day.exercises), id=day_id)
        return day_id

    def update_workout_day(self, day_id: str, day: WorkoutDay) -> None:
        self.days[day_id] = WorkoutDay(name=day.name, exercises=list(day.exercises), id=day_id)

    def delete_workout_day(self, day_id: str) -> None:
        self.days.pop(day_id, None)

    def save_session_summary(self, summary: SessionSummary) -> str:
        self.save_calls += 1
        if self.on_save is not None:
            self.on_save(summary)
        if self.fail_saves:
            self.fail_saves -= 1
            raise PersistenceSaveFailure("Failed to save workout data: offline")
        summary_id = f"log-{len(self.logs) + 1}"
        self.logs[summary_id] = summary
        return summary_id

    def query_session_summaries(self, since: datetime, most_recent_first: bool = True) -> List[SessionSummary]:
        self.queries.append((since, most_recent_first))
        if self.fail_loads:
            raise PersistenceLoadFailure("Failed to load session history: offline")
        matched = [
            dataclasses.replace(summary, id=summary_id)
            for summary_id, summary in self.logs.items()
            if summary.timestamp >= since
        ]
        return sorted(matched, key=lambda item: item.timestamp, reverse=most_recent_first)


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def push_day() -> WorkoutDay:
    return WorkoutDay(
        name="Push Day",
        exercises=[
            ExerciseDefinition(name="Bench Press", kind=ExerciseKind.SETS, count=2),
            ExerciseDefinition(name="Plank", kind=ExerciseKind.TIME, duration=60.0),
        ],
        id="push",
    )


@pytest.fixture()
def single_set_day() -> WorkoutDay:
    return WorkoutDay(
        name="Quick",
        exercises=[ExerciseDefinition(name="Squat", kind=ExerciseKind.SETS, count=1)],
        id="quick",
    )


@pytest.fixture()
def repository(push_day: WorkoutDay, single_set_day: WorkoutDay) -> InMemoryRepository:
    return InMemoryRepository({"push": push_day, "quick": single_set_day})


def make_summary(
    timestamp: datetime,
    total_duration: float,
    sets: List[Tuple[str, float]],
    total_rest_time: float = 0.0,
    day_id: str = "push",
) -> SessionSummary:
    counters: Dict[str, int] = {}
    completed = []
    for name, duration in sets:
        counters[name] = counters.get(name, 0) + 1
        completed.append(CompletedSet(exercise_name=name, set_index=counters[name], duration=duration))
    return SessionSummary(
        day_id=day_id,
        start_time=timestamp,
        end_time=timestamp,
        completed_sets=tuple(completed),
        total_rest_time=total_rest_time,
        total_duration=total_duration,
        timestamp=timestamp,
    )


@pytest.fixture()
def summary_factory() -> Callable[..., SessionSummary]:
    return make_summary


@pytest.fixture()
def sample_summaries() -> List[SessionSummary]:
    """Two workouts, most recent first."""
    return [
        make_summary(
            datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc),
            1200.0,
            [("Bench Press", 40.0), ("Bench Press", 50.0), ("Plank", 60.0)],
            total_rest_time=120.0,
        ),
        make_summary(
            datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc),
            900.0,
            [("Squat", 30.0)],
            total_rest_time=60.0,
            day_id="quick",
        ),
    ]


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write

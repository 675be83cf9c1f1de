from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wt_cli.core.models import ExerciseDefinition, ExerciseKind, SessionSummary, WorkoutDay, as_datetime


def test_exercise_definition_requires_consistent_target() -> None:
    with pytest.raises(ValueError):
        ExerciseDefinition("Bench", ExerciseKind.SETS)
    with pytest.raises(ValueError):
        ExerciseDefinition("Bench", ExerciseKind.SETS, count=3, duration=30.0)
    with pytest.raises(ValueError):
        ExerciseDefinition("Plank", ExerciseKind.TIME, duration=0)
    with pytest.raises(ValueError):
        ExerciseDefinition("Plank", "stretch")  # type: ignore[arg-type]


def test_exercise_kind_accepts_plain_strings() -> None:
    exercise = ExerciseDefinition("Plank", "time", duration=60.0)  # type: ignore[arg-type]
    assert exercise.kind is ExerciseKind.TIME
    assert exercise.target == 60.0
    assert exercise.to_dict() == {"name": "Plank", "type": "time", "duration": 60.0}


def test_workout_day_document_form() -> None:
    day = WorkoutDay.from_dict(
        {"name": "Push", "workouts": [{"name": "Dips", "type": "sets", "count": "3"}]},
        day_id="d1",
    )
    assert day.id == "d1"
    assert day.exercises[0].count == 3
    assert day.to_dict() == {"name": "Push", "workouts": [{"name": "Dips", "type": "sets", "count": 3}]}


def test_session_summary_timestamp_falls_back_to_end_time() -> None:
    summary = SessionSummary.from_dict(
        {
            "dayId": "push",
            "startTime": "2026-03-02T17:00:00Z",
            "endTime": "2026-03-02T18:00:00Z",
            "exercises": [{"name": "Dips", "setNumber": 1, "duration": 30}],
            "totalDuration": 3600,
        },
        summary_id="log-1",
    )

    assert summary.id == "log-1"
    assert summary.timestamp == datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)
    assert summary.total_rest_time == 0.0
    assert summary.completed_sets[0].duration == 30.0
    assert summary.to_dict()["timestamp"] == "2026-03-02T18:00:00+00:00"


def test_as_datetime_defaults_naive_values_to_utc() -> None:
    assert as_datetime("2026-03-02T18:00:00") == datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        as_datetime(12345)

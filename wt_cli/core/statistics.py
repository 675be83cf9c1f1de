"""Aggregation of logged workout sessions into timeframe statistics."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Iterable, Optional

from wt_cli.core.models import DailyAggregate, ExerciseAggregate, SessionSummary, TimeframeStatistics
from wt_cli.core.repository import Repository
from wt_cli.utils.date_ranges import local_date_key, timeframe_start


def compute_statistics(
    summaries: Iterable[SessionSummary],
    timeframe: str = "all",
    tz: Optional[tzinfo] = None,
) -> TimeframeStatistics:
    """Reduce already-filtered session summaries to a statistics record.

    Summaries are expected most-recent-first. Ties for the most frequent
    exercise and for the best workout keep the first one encountered.
    """
    stats = TimeframeStatistics(timeframe=timeframe)

    for summary in summaries:
        stats.total_workouts += 1
        stats.total_time += summary.total_duration
        stats.total_rest_time += summary.total_rest_time

        for item in summary.completed_sets:
            aggregate = stats.exercise_stats.setdefault(item.exercise_name, ExerciseAggregate())
            aggregate.total_sets += 1
            aggregate.total_duration += item.duration

        day = stats.daily_stats.setdefault(local_date_key(summary.timestamp, tz), DailyAggregate())
        day.workouts += 1
        day.total_duration += summary.total_duration

        if stats.best_workout is None or summary.total_duration > stats.best_workout.total_duration:
            stats.best_workout = summary

    if stats.total_workouts:
        stats.average_workout_duration = stats.total_time / stats.total_workouts

    best_sets = 0
    for name, aggregate in stats.exercise_stats.items():
        aggregate.average_set_duration = (
            aggregate.total_duration / aggregate.total_sets if aggregate.total_sets else 0.0
        )
        if aggregate.total_sets > best_sets:
            best_sets = aggregate.total_sets
            stats.most_frequent_exercise = name

    return stats


def load_statistics(
    repository: Repository,
    timeframe: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> TimeframeStatistics:
    """Query the history window for ``timeframe`` and aggregate it."""
    since = timeframe_start(timeframe, now=now)
    summaries = repository.query_session_summaries(since, most_recent_first=True)
    return compute_statistics(summaries, timeframe=timeframe, tz=tz)

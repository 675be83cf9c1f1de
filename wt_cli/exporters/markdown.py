"""Markdown rendering of workout summaries and statistics."""

from __future__ import annotations

from typing import Dict, List, Optional

from wt_cli.core.models import DailyAggregate, ExerciseAggregate, SessionSummary, TimeframeStatistics
from wt_cli.core.session import calculate_exercise_stats
from wt_cli.utils.date_ranges import local_date_key
from wt_cli.utils.formatting import capitalize_first, format_duration, format_time


def summary_to_markdown(summary: SessionSummary, day_name: Optional[str] = None) -> str:
    """Render the end-of-workout summary."""
    lines: List[str] = ["# Workout Complete", ""]
    if day_name:
        lines.append(f"**Day:** {day_name}")
    lines.append(f"**Total Duration:** {format_time(summary.total_duration)}")
    lines.append(f"**Total Rest Time:** {format_time(summary.total_rest_time)}")
    lines.append("")
    lines.append("## Exercises")
    lines.append("")

    stats = calculate_exercise_stats(summary.completed_sets)
    if not stats:
        lines.append("No sets completed")
    for name, aggregate in stats.items():
        lines.append(f"- **{name}**")
        lines.append(f"  - Sets Completed: {aggregate.total_sets}")
        lines.append(f"  - Average Set Duration: {format_time(aggregate.average_set_duration)}")

    return "\n".join(lines).strip() + "\n"


def _daily_section(daily_stats: Dict[str, DailyAggregate]) -> List[str]:
    lines: List[str] = []
    for day, aggregate in daily_stats.items():
        lines.append(f"### {day}")
        lines.append(f"- Workouts: {aggregate.workouts}")
        lines.append(f"- Total Time: {format_duration(aggregate.total_duration)}")
        lines.append("")
    return lines


def _exercise_section(exercise_stats: Dict[str, ExerciseAggregate]) -> List[str]:
    lines: List[str] = []
    for name, aggregate in exercise_stats.items():
        lines.append(f"### {name}")
        lines.append(f"- Total Sets: {aggregate.total_sets}")
        lines.append(f"- Average Set: {format_duration(aggregate.average_set_duration)}")
        lines.append("")
    return lines


def statistics_to_markdown(stats: TimeframeStatistics) -> str:
    """Render timeframe statistics as a markdown report."""
    lines: List[str] = [f"# {capitalize_first(stats.timeframe)} Statistics", ""]

    lines.append("## Overview")
    lines.append(f"- Total Workouts: {stats.total_workouts}")
    lines.append(f"- Total Time: {format_duration(stats.total_time)}")
    lines.append(f"- Total Rest: {format_duration(stats.total_rest_time)}")
    lines.append(f"- Average Workout: {format_duration(stats.average_workout_duration)}")
    lines.append("")

    lines.append("## Best Performance")
    if stats.best_workout:
        lines.append(f"- Date: {local_date_key(stats.best_workout.timestamp)}")
        lines.append(f"- Duration: {format_duration(stats.best_workout.total_duration)}")
    else:
        lines.append("No workouts recorded")
    lines.append("")

    lines.append("## Exercise Analysis")
    if stats.most_frequent_exercise:
        top = stats.exercise_stats[stats.most_frequent_exercise]
        lines.append(f"- Most Frequent: {stats.most_frequent_exercise}")
        lines.append(f"- Total Sets: {top.total_sets}")
    else:
        lines.append("No exercises recorded")
    lines.append("")

    if stats.daily_stats:
        lines.append("## Daily Breakdown")
        lines.append("")
        lines.extend(_daily_section(stats.daily_stats))

    if stats.exercise_stats:
        lines.append("## Exercise Details")
        lines.append("")
        lines.extend(_exercise_section(stats.exercise_stats))

    return "\n".join(lines).strip() + "\n"

"""Statistics and history commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from wt_cli.commands.common import fail, get_state, open_repository, print_json_payload
from wt_cli.core.repository import PersistenceError
from wt_cli.core.state import CLIState
from wt_cli.core.statistics import load_statistics
from wt_cli.exporters.markdown import statistics_to_markdown
from wt_cli.utils.date_ranges import local_date_key, timeframe_start, validate_timeframe
from wt_cli.utils.formatting import format_duration, format_time


def _resolve_timeframe(state: CLIState, timeframe: Optional[str]) -> str:
    if timeframe:
        return timeframe
    configured = validate_timeframe(str(state.config.get("defaults", {}).get("timeframe") or "weekly"))
    return configured or "weekly"


def stats_command(
    ctx: typer.Context,
    timeframe: Optional[str] = typer.Option(
        None,
        help="Timeframe: daily|weekly|monthly|all (default from config)",
        callback=validate_timeframe,
    ),
    output_format: Optional[str] = typer.Option(None, "--format", help="Output format: markdown|json"),
    output_file: Optional[Path] = typer.Option(None, help="Write result to file"),
) -> None:
    """Show aggregate workout statistics for a timeframe."""
    state = get_state(ctx)
    selected = _resolve_timeframe(state, timeframe)
    fmt = (output_format or str(state.config.get("defaults", {}).get("output_format") or "markdown")).lower()
    if fmt not in {"markdown", "json"}:
        raise typer.BadParameter("format must be markdown or json")

    try:
        stats = load_statistics(open_repository(state), selected)
    except PersistenceError as exc:
        fail(state, str(exc))

    if state.json_output or fmt == "json":
        payload = stats.to_dict()
        if output_file:
            output_file.write_text(json.dumps(payload, indent=2) + "\n")
        print_json_payload(state, payload)
        return

    markdown = statistics_to_markdown(stats)
    if output_file:
        output_file.write_text(markdown)
    if state.plain_output:
        typer.echo(markdown, nl=False)
        return
    state.console.print(markdown, markup=False)


def history_command(
    ctx: typer.Context,
    timeframe: Optional[str] = typer.Option(
        None,
        help="Timeframe: daily|weekly|monthly|all (default from config)",
        callback=validate_timeframe,
    ),
    limit: int = typer.Option(20, min=1, help="Maximum number of sessions to show"),
) -> None:
    """List logged workout sessions, most recent first."""
    state = get_state(ctx)
    selected = _resolve_timeframe(state, timeframe)

    try:
        repository = open_repository(state)
        summaries = repository.query_session_summaries(timeframe_start(selected), most_recent_first=True)
        days = repository.list_workout_days()
    except PersistenceError as exc:
        fail(state, str(exc))

    summaries = summaries[:limit]

    if state.json_output:
        print_json_payload(
            state,
            {"timeframe": selected, "sessions": [dict(item.to_dict(), id=item.id) for item in summaries]},
        )
        return

    def day_name(day_id: Optional[str]) -> str:
        day = days.get(day_id or "")
        return day.name if day else (day_id or "-")

    if state.plain_output:
        typer.echo("date\tday\tduration\trest\tsets")
        for item in summaries:
            typer.echo(
                f"{local_date_key(item.timestamp)}\t{day_name(item.day_id)}\t"
                f"{format_time(item.total_duration)}\t{format_time(item.total_rest_time)}\t"
                f"{len(item.completed_sets)}"
            )
        return

    if not summaries:
        state.console.print(f"No workouts logged ({selected}).")
        return

    table = Table(title=f"Workout history ({selected}, {len(summaries)} shown)")
    table.add_column("Date")
    table.add_column("Day")
    table.add_column("Duration")
    table.add_column("Rest")
    table.add_column("Sets")
    for item in summaries:
        table.add_row(
            item.timestamp.astimezone().strftime("%Y-%m-%d %H:%M"),
            day_name(item.day_id),
            format_duration(item.total_duration),
            format_duration(item.total_rest_time),
            str(len(item.completed_sets)),
        )
    state.console.print(table)

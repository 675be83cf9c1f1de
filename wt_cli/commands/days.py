"""Workout day editor commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.table import Table

from wt_cli.commands.common import fail, get_state, open_repository, print_json_payload
from wt_cli.core.constants import EXERCISE_KINDS
from wt_cli.core.models import WorkoutDay
from wt_cli.core.repository import PersistenceError
from wt_cli.core.state import CLIState
from wt_cli.utils.formatting import format_target
from wt_cli.utils.parsing import build_exercise, load_day_input, parse_exercise_spec

app = typer.Typer(help="Manage workout days and their exercises")


def _day_payload(day_id: str, day: WorkoutDay) -> Dict[str, Any]:
    payload = day.to_dict()
    payload["id"] = day_id
    return payload


def _load_day(state: CLIState, day_id: str) -> WorkoutDay:
    try:
        return open_repository(state).get_workout_day(day_id)
    except PersistenceError as exc:
        fail(state, str(exc))


def _save_day(state: CLIState, day_id: str, day: WorkoutDay) -> None:
    try:
        open_repository(state).update_workout_day(day_id, day)
    except PersistenceError as exc:
        fail(state, str(exc))


def _print_day(state: CLIState, day_id: str, day: WorkoutDay, message: Optional[str] = None) -> None:
    if state.json_output:
        print_json_payload(state, _day_payload(day_id, day))
        return

    if state.plain_output:
        typer.echo(f"id\t{day_id}")
        typer.echo(f"name\t{day.name}")
        for index, exercise in enumerate(day.exercises, 1):
            typer.echo(f"{index}\t{exercise.name}\t{exercise.kind.value}\t{format_target(exercise)}")
        return

    if message:
        state.console.print(message)
    table = Table(title=f"{day.name} ({day_id})")
    table.add_column("#")
    table.add_column("Exercise")
    table.add_column("Kind")
    table.add_column("Target")
    for index, exercise in enumerate(day.exercises, 1):
        table.add_row(str(index), exercise.name, exercise.kind.value, format_target(exercise))
    state.console.print(table)


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List workout days."""
    state = get_state(ctx)
    try:
        days = open_repository(state).list_workout_days()
    except PersistenceError as exc:
        fail(state, str(exc))

    if state.json_output:
        print_json_payload(state, {"days": [_day_payload(day_id, day) for day_id, day in days.items()]})
        return

    if state.plain_output:
        typer.echo("id\tname\texercises")
        for day_id, day in days.items():
            typer.echo(f"{day_id}\t{day.name}\t{len(day.exercises)}")
        typer.echo(f"total\t{len(days)}")
        return

    if not days:
        state.console.print("No workout days defined. Create one with `wt days create NAME`.")
        return

    table = Table(title=f"Workout days ({len(days)} total)")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Exercises")
    for day_id, day in days.items():
        table.add_row(
            day_id,
            day.name,
            ", ".join(f"{exercise.name} ({format_target(exercise)})" for exercise in day.exercises) or "-",
        )
    state.console.print(table)


@app.command("show")
def show_command(
    ctx: typer.Context,
    day_id: str = typer.Argument(..., help="Workout day ID"),
) -> None:
    """Show one workout day."""
    state = get_state(ctx)
    _print_day(state, day_id, _load_day(state, day_id))


@app.command("create")
def create_command(
    ctx: typer.Context,
    name: str = typer.Argument("New Day", help="Day name"),
    exercises: Optional[List[str]] = typer.Option(
        None,
        "--exercise",
        "-e",
        help="Exercise as Name:sets:N or Name:time:MINUTES (repeatable)",
    ),
) -> None:
    """Create a workout day."""
    state = get_state(ctx)
    try:
        parsed = [parse_exercise_spec(value) for value in exercises or []]
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    day = WorkoutDay(name=name, exercises=parsed)
    try:
        day_id = open_repository(state).create_workout_day(day)
    except PersistenceError as exc:
        fail(state, str(exc))
    _print_day(state, day_id, day, message=f"Created day {day_id}")


@app.command("rename")
def rename_command(
    ctx: typer.Context,
    day_id: str = typer.Argument(..., help="Workout day ID"),
    name: str = typer.Argument(..., help="New day name"),
) -> None:
    """Rename a workout day."""
    state = get_state(ctx)
    day = _load_day(state, day_id)
    day.name = name
    _save_day(state, day_id, day)
    _print_day(state, day_id, day, message="Changes saved successfully")


@app.command("add-exercise")
def add_exercise_command(
    ctx: typer.Context,
    day_id: str = typer.Argument(..., help="Workout day ID"),
    name: str = typer.Argument(..., help="Exercise name"),
    kind: str = typer.Option("sets", help="Exercise kind: sets|time"),
    count: Optional[int] = typer.Option(None, help="Target number of sets (kind=sets)"),
    minutes: Optional[str] = typer.Option(None, help="Target duration in minutes or MM:SS (kind=time)"),
) -> None:
    """Append an exercise to a workout day."""
    state = get_state(ctx)
    if kind not in EXERCISE_KINDS:
        raise typer.BadParameter(f"kind must be one of: {', '.join(EXERCISE_KINDS)}")
    if kind == "sets" and count is None:
        count = 3
    try:
        exercise = build_exercise(name, kind, count=count, minutes=minutes)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    day = _load_day(state, day_id)
    day.exercises.append(exercise)
    _save_day(state, day_id, day)
    _print_day(state, day_id, day, message="Changes saved successfully")


@app.command("remove-exercise")
def remove_exercise_command(
    ctx: typer.Context,
    day_id: str = typer.Argument(..., help="Workout day ID"),
    position: int = typer.Argument(..., help="1-based exercise position"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
) -> None:
    """Remove an exercise from a workout day."""
    state = get_state(ctx)
    day = _load_day(state, day_id)
    if position < 1 or position > len(day.exercises):
        raise typer.BadParameter(f"position must be between 1 and {len(day.exercises)}")

    exercise = day.exercises[position - 1]
    if not force:
        confirmed = typer.confirm(f"Remove exercise '{exercise.name}' from {day.name}?", default=False)
        if not confirmed:
            raise typer.Exit(code=0)

    del day.exercises[position - 1]
    _save_day(state, day_id, day)
    _print_day(state, day_id, day, message=f"Removed {exercise.name}")


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    day_id: str = typer.Argument(..., help="Workout day ID"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
) -> None:
    """Delete a workout day."""
    state = get_state(ctx)

    if not force:
        confirmed = typer.confirm(f"Delete workout day {day_id}?", default=False)
        if not confirmed:
            raise typer.Exit(code=0)

    try:
        open_repository(state).delete_workout_day(day_id)
    except PersistenceError as exc:
        fail(state, str(exc))

    payload = {"status": "deleted", "dayId": day_id}
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\tdeleted")
        typer.echo(f"day_id\t{day_id}")
        return

    state.console.print(f"Deleted workout day {day_id}")


@app.command("import")
def import_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON/YAML file with day(s)"),
    dry_run: bool = typer.Option(False, help="Validate and show days without saving"),
) -> None:
    """Create workout days from a JSON or YAML file."""
    state = get_state(ctx)
    try:
        days = load_day_input(file)
    except (ValueError, KeyError, TypeError) as exc:
        raise typer.BadParameter(f"Invalid day definition in {file}: {exc}")

    results: List[Dict[str, Any]] = []
    for day in days:
        if dry_run:
            results.append({"status": "dry-run", "name": day.name, "payload": day.to_dict()})
            continue
        try:
            day_id = open_repository(state).create_workout_day(day)
        except PersistenceError as exc:
            fail(state, str(exc))
        results.append({"status": "created", "name": day.name, "id": day_id})

    if state.json_output:
        print_json_payload(state, {"results": results})
        return

    if state.plain_output:
        typer.echo(f"processed\t{len(results)}")
        for item in results:
            typer.echo(f"{item['status']}\t{item['name']}\t{item.get('id', '')}")
        return

    state.console.print(f"Processed {len(results)} day(s)")
    for item in results:
        suffix = f" ({item['id']})" if item.get("id") else ""
        state.console.print(f"- {item['status']}: {item['name']}{suffix}")

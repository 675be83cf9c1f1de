"""Live workout session and pending-log commands."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import typer

from wt_cli.commands.common import fail, get_state, open_repository, print_json_payload
from wt_cli.core.config import ConfigError, resolve_pending_dir, resolve_tick_interval
from wt_cli.core.constants import SESSION_ACTIONS
from wt_cli.core.repository import PersistenceError, PersistenceSaveFailure
from wt_cli.core.session import InvalidStateTransition, Phase, WorkoutSession
from wt_cli.core.state import CLIState
from wt_cli.core.ticker import TickKind
from wt_cli.exporters.json_export import load_pending_summaries, write_pending_summary
from wt_cli.exporters.markdown import summary_to_markdown
from wt_cli.utils.formatting import format_time

logger = logging.getLogger(__name__)

ACTION_PROMPT = "Action [" + "/".join(SESSION_ACTIONS) + "]"


def _notify(state: CLIState, message: str, style: Optional[str] = None) -> None:
    if state.json_output:
        return
    if state.plain_output:
        typer.echo(message)
        return
    state.console.print(message, style=style, markup=False)


def _title_updater(state: CLIState) -> Optional[Callable[[TickKind, float], None]]:
    if state.plain_output or state.json_output or state.quiet:
        return None

    def update(kind: TickKind, seconds: float) -> None:
        label = "Resting" if kind is TickKind.REST else "Exercise"
        state.console.set_window_title(f"wt - {label} {format_time(seconds)}")

    return update


def _print_status(state: CLIState, session: WorkoutSession) -> None:
    view = session.snapshot()
    if state.json_output:
        return

    if view.exercise_name:
        header = (
            f"Exercise {view.exercise_position}/{view.exercise_count}: "
            f"{view.exercise_name} ({view.exercise_target}), set {view.current_set}"
        )
    else:
        header = "All exercises done"
    _notify(state, header, style="bold")

    status = f"Phase: {view.phase.value.replace('_', ' ')}"
    if view.paused:
        status += " (paused)"
    if view.phase is Phase.EXERCISE_IN_PROGRESS:
        status += f" | set time {format_time(view.elapsed)}"
    if view.phase is Phase.RESTING:
        status += f" | rest {format_time(view.rest_elapsed)}"
    status += f" | session {format_time(view.session_elapsed)}"
    _notify(state, status)


def _print_help(state: CLIState) -> None:
    for key, label in SESSION_ACTIONS.items():
        _notify(state, f"  {key}  {label}")


def _confirm_pending(session: WorkoutSession, question: str) -> bool:
    if typer.confirm(question, default=False):
        session.confirm()
        return True
    session.decline()
    return False


def _finish(state: CLIState, session: WorkoutSession, day_name: str) -> None:
    status = "saved"
    while True:
        try:
            summary = session.complete_workout()
            break
        except PersistenceSaveFailure as exc:
            _notify(state, f"Could not save workout: {exc}", style="red")
            if typer.confirm("Retry saving?", default=True):
                continue
            unsaved = session.discard_unsaved()
            assert unsaved is not None
            path = write_pending_summary(resolve_pending_dir(state.config), unsaved, day_name=day_name)
            _notify(state, f"Workout stored locally at {path}. Run `wt sync` to upload it later.")
            summary, status = unsaved, "pending"
            break

    if state.json_output:
        print_json_payload(state, {"status": status, "id": summary.id, "summary": summary.to_dict()})
        return

    markdown = summary_to_markdown(summary, day_name=day_name)
    if state.plain_output:
        typer.echo(markdown, nl=False)
        return
    state.console.print(markdown, markup=False)


def _run_action(state: CLIState, session: WorkoutSession, action: str) -> Optional[str]:
    """Apply one prompt action; returns "finish" or "abandon" when the loop should end."""
    if action == "s":
        session.start_exercise()
        _print_status(state, session)
    elif action == "c":
        record = session.complete_set()
        _notify(state, f"{record.exercise_name}: set {record.set_index} done in {format_time(record.duration)}")
        if not session.is_workout_complete():
            _print_status(state, session)
    elif action == "r":
        session.start_rest()
        _notify(state, "Resting...")
    elif action == "k":
        session.request_skip()
        name = session.current_exercise.name if session.current_exercise else "exercise"
        if _confirm_pending(session, f"Skip {name}? Sets recorded for it will be discarded."):
            _notify(state, f"Skipped {name}")
            if not session.is_workout_complete():
                _print_status(state, session)
    elif action == "p":
        paused = session.toggle_pause()
        _notify(state, "Paused" if paused else "Resumed")
    elif action == "f":
        if typer.confirm("Finish workout now?", default=True):
            return "finish"
    elif action == "q":
        session.request_abandon()
        if _confirm_pending(session, "Abandon this workout? Progress will not be saved."):
            return "abandon"
    elif action == "?":
        if state.json_output:
            print_json_payload(state, session.snapshot().to_dict())
        _print_status(state, session)
        _print_help(state)
    else:
        _notify(state, f"Unknown action '{action}'")
        _print_help(state)
    return None


def start_command(
    ctx: typer.Context,
    day_id: str = typer.Argument(..., help="Workout day ID"),
) -> None:
    """Run an interactive workout session for a day."""
    state = get_state(ctx)
    try:
        interval = resolve_tick_interval(state.config)
    except ConfigError as exc:
        fail(state, f"Config error: {exc}", code=2)

    try:
        session = WorkoutSession(
            repository=open_repository(state),
            tick_interval=interval,
            on_tick=_title_updater(state),
        )
        session.start_workout_by_id(day_id)
    except PersistenceError as exc:
        fail(state, str(exc))
    except ValueError as exc:
        fail(state, str(exc))

    day_name = session.active.day.name if session.active else day_id
    _notify(state, f"Starting {day_name}. Type ? for help.", style="bold")
    _print_status(state, session)

    outcome: Optional[str] = None
    while outcome is None:
        if session.is_workout_complete():
            _notify(state, "All exercises done!", style="green")
            outcome = "finish"
            break
        action = typer.prompt(ACTION_PROMPT, default="?").strip().lower()
        try:
            outcome = _run_action(state, session, action or "?")
        except InvalidStateTransition as exc:
            logger.debug("Rejected action %r: %s", action, exc)
            _notify(state, str(exc), style="yellow")

    if outcome == "abandon":
        if state.json_output:
            print_json_payload(state, {"status": "abandoned", "dayId": day_id})
        else:
            _notify(state, "Workout abandoned")
        return

    _finish(state, session, day_name)


def sync_command(ctx: typer.Context) -> None:
    """Upload workouts that could not be saved earlier."""
    state = get_state(ctx)
    directory = resolve_pending_dir(state.config)
    try:
        pending = load_pending_summaries(directory)
    except (ValueError, KeyError) as exc:
        fail(state, f"Invalid pending workout file in {directory}: {exc}")

    results: List[Dict[str, Any]] = []
    failed = 0
    for path, summary in pending:
        try:
            summary_id = open_repository(state).save_session_summary(summary)
        except PersistenceError as exc:
            failed += 1
            results.append({"status": "error", "file": str(path), "message": str(exc)})
            continue
        path.unlink()
        results.append({"status": "saved", "file": str(path), "id": summary_id})

    if state.json_output:
        print_json_payload(state, {"results": results, "failed": failed})
    elif state.plain_output:
        typer.echo(f"pending\t{len(pending)}")
        for item in results:
            typer.echo(f"{item['status']}\t{item['file']}\t{item.get('id') or item.get('message', '')}")
    elif not pending:
        state.console.print("No pending workouts.")
    else:
        for item in results:
            if item["status"] == "saved":
                state.console.print(f"- saved {item['file']} ({item['id']})", markup=False)
            else:
                state.console.print(f"- failed {item['file']}: {item['message']}", style="red", markup=False)

    if failed:
        raise typer.Exit(code=1)


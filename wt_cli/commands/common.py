"""Shared command helpers."""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer

from wt_cli.core.api import DocumentStoreAPI
from wt_cli.core.config import resolve_api_key, resolve_project_id
from wt_cli.core.constants import DAYS_COLLECTION, LOGS_COLLECTION, STORE_BASE
from wt_cli.core.repository import PersistenceLoadFailure, WorkoutRepository
from wt_cli.core.state import CLIState


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def open_repository(state: CLIState) -> WorkoutRepository:
    """Build (once) the document store repository from config."""
    if state.repository is not None:
        return state.repository

    project_id = resolve_project_id(state.config)
    if not project_id:
        raise PersistenceLoadFailure(
            "No document store project configured. Set store.project_id or WT_PROJECT_ID."
        )

    store_cfg = state.config.get("store", {})
    api_cfg = state.config.get("api", {})
    api = DocumentStoreAPI(
        project_id=project_id,
        api_key=resolve_api_key(state.config),
        base_url=str(store_cfg.get("base_url") or STORE_BASE),
        database=str(store_cfg.get("database") or "(default)"),
        rate_limit_delay=float(api_cfg.get("rate_limit_delay", 0.0)),
        max_retries=int(api_cfg.get("max_retries", 3)),
        timeout_seconds=int(api_cfg.get("timeout_seconds", 30)),
    )
    state.repository = WorkoutRepository(
        api,
        days_collection=str(store_cfg.get("days_collection") or DAYS_COLLECTION),
        logs_collection=str(store_cfg.get("logs_collection") or LOGS_COLLECTION),
    )
    return state.repository


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def fail(state: CLIState, message: str, code: int = 1) -> NoReturn:
    """Report an error in the active output mode and exit."""
    if state.json_output:
        print_json_payload(state, {"status": "error", "message": message})
    elif state.plain_output:
        typer.echo("status\terror")
        typer.echo(f"message\t{message}")
    else:
        state.console.print(message, style="red", markup=False)
    raise typer.Exit(code=code)

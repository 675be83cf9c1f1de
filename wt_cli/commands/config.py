"""Configuration commands."""

from __future__ import annotations

import typer

from wt_cli.commands.common import get_state, print_json_payload
from wt_cli.core.config import DEFAULT_CONFIG, resolve_api_key, resolve_pending_dir, resolve_project_id, save_config

app = typer.Typer(help="Inspect and initialize configuration")


@app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Print the effective configuration."""
    state = get_state(ctx)
    payload = {
        "path": str(state.config_path),
        "exists": state.config_path.exists(),
        "projectId": resolve_project_id(state.config) or None,
        "apiKeySet": resolve_api_key(state.config) is not None,
        "pendingDir": str(resolve_pending_dir(state.config)),
        "config": state.config,
    }

    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo(f"path\t{payload['path']}")
        typer.echo(f"exists\t{str(payload['exists']).lower()}")
        typer.echo(f"project_id\t{payload['projectId'] or ''}")
        typer.echo(f"api_key_set\t{str(payload['apiKeySet']).lower()}")
        typer.echo(f"pending_dir\t{payload['pendingDir']}")
        return

    state.console.print(f"Config file: {payload['path']}" + ("" if payload["exists"] else " (not created)"))
    state.console.print(f"Project: {payload['projectId'] or 'not set'}")
    state.console.print(f"API key: {'set' if payload['apiKeySet'] else 'not set'}")
    state.console.print(f"Pending dir: {payload['pendingDir']}")
    state.console.print_json(data=state.config)


@app.command("init")
def init_command(
    ctx: typer.Context,
    project_id: str = typer.Option("", help="Document store project id", envvar="WT_PROJECT_ID"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write a default config file."""
    state = get_state(ctx)
    path = state.config_path
    if path.exists() and not force:
        typer.echo(f"Config file already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    config = dict(DEFAULT_CONFIG, store=dict(DEFAULT_CONFIG["store"], project_id=project_id))
    written = save_config(config, path)

    if state.json_output:
        print_json_payload(state, {"status": "written", "path": str(written)})
        return

    if state.plain_output:
        typer.echo("status\twritten")
        typer.echo(f"path\t{written}")
        return

    state.console.print(f"Wrote config to {written}")

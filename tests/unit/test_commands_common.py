from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import pytest
import typer
from rich.console import Console

from wt_cli.commands.common import fail, get_state, open_repository
from wt_cli.core.repository import PersistenceLoadFailure, WorkoutRepository
from wt_cli.core.state import CLIState


@dataclass
class FakeContext:
    obj: Any


def _state(config: Dict[str, Any] | None = None, **overrides: Any) -> CLIState:
    options: Dict[str, Any] = dict(
        json_output=False,
        plain_output=True,
        verbose=False,
        quiet=False,
        config_path=Path("/tmp/config.toml"),
        config=config
        or {
            "store": {"project_id": "demo", "database": "(default)", "api_key_env": "WT_TEST_KEY"},
            "api": {"rate_limit_delay": 0.0, "max_retries": 5, "timeout_seconds": 12},
        },
        console=Console(record=True),
    )
    options.update(overrides)
    return CLIState(**options)


def test_get_state_returns_cli_state() -> None:
    state = _state()
    assert get_state(FakeContext(obj=state)) is state


def test_get_state_raises_on_invalid_obj() -> None:
    with pytest.raises(typer.Exit):
        get_state(FakeContext(obj={"not": "state"}))


def test_open_repository_uses_configured_api_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WT_PROJECT_ID", raising=False)
    monkeypatch.setenv("WT_TEST_KEY", "k-1")
    state = _state()

    repository = open_repository(state)

    assert isinstance(repository, WorkoutRepository)
    assert repository.days_collection == "workoutDays"
    assert repository.api.project_id == "demo"
    assert repository.api.api_key == "k-1"
    assert repository.api.max_retries == 5
    assert repository.api.timeout_seconds == 12
    assert repository.api.base_url == "https://firestore.googleapis.com/v1"
    assert open_repository(state) is repository


def test_open_repository_requires_project(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WT_PROJECT_ID", raising=False)
    state = _state(config={"store": {"project_id": ""}})
    with pytest.raises(PersistenceLoadFailure, match="WT_PROJECT_ID"):
        open_repository(state)


def test_log_level_follows_flags() -> None:
    assert _state(verbose=True).log_level == 10
    assert _state(quiet=True).log_level == 40
    assert _state().log_level == 30


def test_fail_plain_output(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(typer.Exit) as excinfo:
        fail(_state(), "offline", code=1)
    assert excinfo.value.exit_code == 1
    assert capsys.readouterr().out == "status\terror\nmessage\toffline\n"


def test_fail_rich_output_is_not_markup() -> None:
    state = _state(plain_output=False)
    with pytest.raises(typer.Exit):
        fail(state, "bad [red]value[/red]")
    assert "bad [red]value[/red]" in state.console.export_text()

"""Runtime state container for CLI context."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from wt_cli.core.repository import WorkoutRepository


@dataclass
class CLIState:
    """CLI options, loaded configuration and the lazily opened repository."""

    json_output: bool
    plain_output: bool
    verbose: bool
    quiet: bool
    config_path: Path
    config: Dict[str, Any]
    console: Console
    repository: Optional[WorkoutRepository] = field(default=None, repr=False)

    @property
    def log_level(self) -> int:
        if self.verbose:
            return logging.DEBUG
        if self.quiet:
            return logging.ERROR
        return logging.WARNING

"""JSON export helpers and the local queue of unsaved session summaries."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Tuple

from wt_cli.core.models import SessionSummary
from wt_cli.utils.text import slugify


def write_json(path: Path, payload: Any) -> Path:
    """Write payload as pretty JSON and return path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")
    return path


def write_pending_summary(directory: Path, summary: SessionSummary, day_name: str = "") -> Path:
    """Queue an unsaved summary for a later ``wt sync``."""
    stamp = summary.timestamp.strftime("%Y%m%dT%H%M%S")
    name = f"{stamp}-{slugify(day_name or summary.day_id or 'workout', max_len=40)}.json"
    return write_json(directory / name, summary.to_dict())


def load_pending_summaries(directory: Path) -> List[Tuple[Path, SessionSummary]]:
    """Read queued summaries, oldest first."""
    if not directory.exists():
        return []
    pending: List[Tuple[Path, SessionSummary]] = []
    for path in sorted(directory.glob("*.json")):
        pending.append((path, SessionSummary.from_dict(json.loads(path.read_text()))))
    return pending

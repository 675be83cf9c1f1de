"""Timeframe window helpers for session history queries."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

import typer

from wt_cli.core.constants import TIMEFRAMES

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def validate_timeframe(value: Optional[str]) -> Optional[str]:
    """Typer callback that validates timeframe options."""
    if value is None:
        return value
    normalized = value.strip().lower()
    if normalized not in TIMEFRAMES:
        raise typer.BadParameter(
            f"Invalid timeframe '{value}'. Expected one of: {', '.join(TIMEFRAMES)}"
        )
    return normalized


def subtract_month(moment: datetime) -> datetime:
    """Same wall time one calendar month earlier, clamping the day of month."""
    year, month = (moment.year - 1, 12) if moment.month == 1 else (moment.year, moment.month - 1)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def timeframe_start(timeframe: str, now: Optional[datetime] = None) -> datetime:
    """Resolve the inclusive start instant of a reporting timeframe.

    ``daily`` starts at local midnight, ``weekly`` seven days before ``now``,
    ``monthly`` one calendar month before ``now`` and ``all`` at the epoch.
    """
    if now is not None and now.tzinfo is not None:
        current = now
    else:
        current = (now or datetime.now()).astimezone()

    if timeframe == "daily":
        return current.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe == "weekly":
        return current - timedelta(days=7)
    if timeframe == "monthly":
        return subtract_month(current)
    if timeframe == "all":
        return EPOCH
    raise ValueError(f"Unknown timeframe: {timeframe}")


def local_date_key(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    """Calendar date (YYYY-MM-DD) of a timestamp on the local day boundary."""
    return moment.astimezone(tz).strftime("%Y-%m-%d")

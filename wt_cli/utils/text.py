"""Text helpers."""

from __future__ import annotations

import re


def slugify(value: str, max_len: int = 50) -> str:
    """Generate filesystem-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    if not slug:
        slug = "workout"
    return slug[:max_len].rstrip("-")


def plural(count: int, noun: str) -> str:
    """'1 set', '3 sets'."""
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"

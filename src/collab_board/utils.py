"""Timestamps for task creation and snapshot stamps."""

from __future__ import annotations

from datetime import datetime, timezone


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_iso_timestamp(value: str) -> bool:
    """Return True if *value* is an ISO-8601 timestamp (``Z`` suffix allowed)."""
    if not value:
        return False
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True

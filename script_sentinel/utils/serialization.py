"""Shared serialization helpers.

Provides the ``snake_to_camel`` alias generator used by every
Pydantic model config, and the UTC timestamp helpers used for
``discoveredAt``, ``createdAt`` and message timestamps.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase.

    Args:
        name: A snake_case identifier such as
            ``"my_field_name"``.

    Returns:
        The camelCase equivalent, e.g. ``"myFieldName"``.
    """
    parts = name.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


def epoch_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return time.time_ns() // 1_000_000

"""Shared utilities for coercing raw observation fields and handling local time."""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_SENTINEL_VALUES = {"", "NA", "N/A", "null", "None", "nan", "NaN"}


def coerce_float(value: Any) -> float | None:
    """Return ``value`` as a finite float, or ``None`` when it is not usable."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            numeric = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        stripped = value.strip()
        if stripped in _SENTINEL_VALUES:
            return None
        try:
            numeric = float(stripped)
        except ValueError:
            return None
    else:
        return None

    if math.isnan(numeric) or math.isinf(numeric):
        return None
    return numeric


def coerce_int(value: Any) -> int | None:
    numeric = coerce_float(value)
    if numeric is None:
        return None
    return int(round_half_up(numeric))


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Resolve an IANA zone name; ``None`` means the system local zone."""

    if not name:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'.") from exc


def ensure_aware(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Attach ``tz`` (or the system local zone) to naive datetimes."""

    if moment.tzinfo is not None:
        return moment
    if tz is not None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone()


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Express ``moment`` as wall-clock time in ``tz`` (system local when unset)."""

    return ensure_aware(moment, tz).astimezone(tz)


def parse_timestamp(raw: str | None, tz: tzinfo | None = None) -> datetime | None:
    """Parse an ISO8601 timestamp, returning ``None`` when it cannot be read.

    Naive timestamps are wall-clock times in ``tz``.
    """

    if not raw:
        return None
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            return None
    return ensure_aware(parsed, tz)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from negative infinity, matching the dashboard display."""

    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


__all__ = [
    "coerce_float",
    "coerce_int",
    "resolve_timezone",
    "ensure_aware",
    "to_local",
    "parse_timestamp",
    "utc_now",
    "round_half_up",
]

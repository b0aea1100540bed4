"""Fold hourly records into per-day forecast summaries."""

from __future__ import annotations

import logging
import math
from datetime import date, tzinfo
from statistics import mean
from typing import Iterable, Literal, Sequence

from pipelines.common import to_local
from pipelines.model import DayForecast, HourRecord

logger = logging.getLogger(__name__)

WindDirectionMode = Literal["circular", "arithmetic"]
WIND_DIRECTION_MODES: tuple[str, ...] = ("circular", "arithmetic")

# Fixed English names so output does not depend on the process locale.
_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_VANISHING_RESULTANT = 1e-9


def _mean_or_zero(values: Sequence[float]) -> float:
    return mean(values) if values else 0.0


def local_date_key(record: HourRecord, tz: tzinfo | None = None) -> str:
    return to_local(record.forecast_time, tz).date().isoformat()


def day_name(date_key: str) -> str:
    return _DAY_NAMES[date.fromisoformat(date_key).weekday()]


def mean_wind_direction(
    directions: Sequence[float], mode: WindDirectionMode = "circular"
) -> float:
    """Average compass bearings.

    ``circular`` averages unit vectors so that 350 and 10 give 0, not 180.
    When the vectors cancel out the arithmetic mean is returned instead.
    """

    if not directions:
        return 0.0
    if mode == "arithmetic":
        return mean(directions)
    if mode != "circular":
        raise ValueError(f"Unsupported wind direction mode '{mode}'.")

    sin_sum = sum(math.sin(math.radians(d)) for d in directions)
    cos_sum = sum(math.cos(math.radians(d)) for d in directions)
    if math.hypot(sin_sum, cos_sum) < _VANISHING_RESULTANT * len(directions):
        return mean(directions)
    bearing = math.degrees(math.atan2(sin_sum, cos_sum)) % 360.0
    # atan2 can land a hair below 360 for northerly inputs
    return 0.0 if math.isclose(bearing, 360.0) else bearing


def summarize_day(
    date_key: str,
    records: Iterable[HourRecord],
    *,
    wind_direction_mode: WindDirectionMode = "circular",
) -> DayForecast:
    hourly = tuple(sorted(records, key=lambda record: record.forecast_time))
    temperatures = [r.temperature_two_m for r in hourly if r.temperature_two_m is not None]
    if not temperatures:
        logger.warning("Day %s has no temperature samples; temperature aggregates absent", date_key)

    return DayForecast(
        date=date_key,
        day_name=day_name(date_key),
        min_temp=min(temperatures) if temperatures else None,
        max_temp=max(temperatures) if temperatures else None,
        avg_temp=mean(temperatures) if temperatures else None,
        total_precipitation=sum(r.precipitation or 0.0 for r in hourly),
        avg_precipitation_prob=_mean_or_zero([r.precipitation_probability or 0.0 for r in hourly]),
        avg_wind_speed=_mean_or_zero([r.wind_speed_ten_m or 0.0 for r in hourly]),
        dominant_wind_direction=mean_wind_direction(
            [r.wind_direction_ten_m or 0.0 for r in hourly], wind_direction_mode
        ),
        hourly_data=hourly,
    )


def aggregate_days(
    records: Iterable[HourRecord],
    *,
    tz: tzinfo | None = None,
    wind_direction_mode: WindDirectionMode = "circular",
) -> tuple[DayForecast, ...]:
    """Partition ``records`` by local calendar day and summarize each day.

    The result is rebuilt from scratch on every call and ordered by date.
    """

    groups: dict[str, list[HourRecord]] = {}
    for record in records:
        groups.setdefault(local_date_key(record, tz), []).append(record)

    days = tuple(
        summarize_day(date_key, hourly, wind_direction_mode=wind_direction_mode)
        for date_key, hourly in sorted(groups.items(), key=lambda kv: kv[0])
    )
    logger.debug("Aggregated %s records into %s days", sum(map(len, groups.values())), len(days))
    return days


__all__ = [
    "WindDirectionMode",
    "WIND_DIRECTION_MODES",
    "local_date_key",
    "day_name",
    "mean_wind_direction",
    "summarize_day",
    "aggregate_days",
]

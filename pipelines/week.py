"""Project day summaries onto the weekly trend line for one metric."""

from __future__ import annotations

from statistics import mean
from typing import Callable, Iterable, Mapping

from pipelines.common import round_half_up
from pipelines.model import METRICS, DayForecast, WeekPoint


def _round(value: float | None) -> int | None:
    if value is None:
        return None
    return int(round_half_up(value))


def _topsoil_percent(day: DayForecast) -> int | None:
    if not day.hourly_data:
        return None
    return _round(mean(hour.soil_moisture_zero_to_one_cm * 100 for hour in day.hourly_data))


def _temperature(day: DayForecast) -> dict:
    high = _round(day.max_temp)
    return {"min": _round(day.min_temp), "max": high, "value": high}


def _precipitation(day: DayForecast) -> dict:
    chance = _round(day.avg_precipitation_prob)
    return {"precip": chance, "value": chance}


def _wind(day: DayForecast) -> dict:
    speed = _round(day.avg_wind_speed)
    return {"wind": speed, "value": speed}


def _humidity(day: DayForecast) -> dict:
    # Same quantity as soil_moisture; the dashboard labels it "humidity".
    percent = _topsoil_percent(day)
    return {"humidity": percent, "value": percent}


def _soil_moisture(day: DayForecast) -> dict:
    percent = _topsoil_percent(day)
    return {"soil_moisture": percent, "value": percent}


def _evapotranspiration(day: DayForecast) -> dict:
    if not day.hourly_data:
        return {}
    average = round_half_up(mean(hour.evapotranspiration for hour in day.hourly_data), 3)
    return {"evapotranspiration": average, "value": average}


_PROJECTIONS: Mapping[str, Callable[[DayForecast], dict]] = {
    "temperature": _temperature,
    "precipitation": _precipitation,
    "wind": _wind,
    "humidity": _humidity,
    "soil_moisture": _soil_moisture,
    "evapotranspiration": _evapotranspiration,
}


def validate_metric(metric: str) -> str:
    if metric not in _PROJECTIONS:
        raise ValueError(
            f"Unsupported metric '{metric}'. Expected one of: {', '.join(METRICS)}."
        )
    return metric


def project_week(days: Iterable[DayForecast], metric: str) -> list[WeekPoint]:
    """Return one trend point per day carrying only ``metric``'s fields."""

    projection = _PROJECTIONS[validate_metric(metric)]
    return [
        WeekPoint(day=day.day_name, date=day.date, metric=metric, **projection(day))
        for day in days
    ]


__all__ = ["project_week", "validate_metric"]

"""Per-hour chart series and condition labels for a selected day."""

from __future__ import annotations

from datetime import datetime, tzinfo

from pipelines.common import round_half_up, to_local
from pipelines.model import DayForecast, HourPoint, HourRecord


def hour_label(moment: datetime, tz: tzinfo | None = None) -> str:
    """12-hour clock label such as ``"6 AM"`` or ``"12 PM"``."""

    hour = to_local(moment, tz).hour
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def describe_conditions(temperature: float, precipitation: float, precip_prob: float) -> str:
    """Coarse condition label; precipitation outranks temperature."""

    if precipitation > 0.5:
        return "Heavy Rain"
    if precipitation > 0.1:
        return "Light Rain"
    if precip_prob > 70:
        return "Cloudy"
    if temperature > 85:
        return "Sunny"
    if temperature > 70:
        return "Partly Cloudy"
    if temperature > 50:
        return "Cloudy"
    return "Cold"


def _percent(fraction: float) -> float:
    return round_half_up(fraction * 100, 1)


def project_hour(
    record: HourRecord,
    index: int,
    *,
    selected_index: int | None = None,
    tz: tzinfo | None = None,
) -> HourPoint:
    return HourPoint(
        time=hour_label(record.forecast_time, tz),
        temperature=int(round_half_up(record.temperature_two_m)),
        temperature_80m=int(round_half_up(record.temperature_eighty_m)),
        precipitation=round_half_up(record.precipitation, 2),
        rain=round_half_up(record.rain, 2),
        showers=round_half_up(record.showers, 2),
        precip_prob=int(round_half_up(record.precipitation_probability)),
        wind_speed=round_half_up(record.wind_speed_ten_m, 1),
        wind_direction=int(round_half_up(record.wind_direction_ten_m)),
        humidity=_percent(record.soil_moisture_zero_to_one_cm),
        soil_moisture=_percent(record.soil_moisture_zero_to_one_cm),
        soil_moisture_1_to_3=_percent(record.soil_moisture_one_to_three_cm),
        soil_moisture_3_to_9=_percent(record.soil_moisture_three_to_nine_cm),
        soil_moisture_9_to_27=_percent(record.soil_moisture_nine_to_twentyseven_cm),
        evapotranspiration=round_half_up(record.evapotranspiration, 3),
        condition=describe_conditions(
            record.temperature_two_m, record.precipitation, record.precipitation_probability
        ),
        index=index,
        is_selected=index == selected_index,
    )


def project_hourly(
    day: DayForecast,
    selected_index: int | None = None,
    *,
    tz: tzinfo | None = None,
) -> list[HourPoint]:
    return [
        project_hour(record, index, selected_index=selected_index, tz=tz)
        for index, record in enumerate(day.hourly_data)
    ]


def describe_day(day: DayForecast) -> str:
    return describe_conditions(
        day.avg_temp if day.avg_temp is not None else 0.0,
        day.total_precipitation,
        day.avg_precipitation_prob,
    )


__all__ = ["hour_label", "describe_conditions", "describe_day", "project_hour", "project_hourly"]

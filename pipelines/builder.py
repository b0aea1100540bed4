"""Materialize merged accumulators into canonical ``HourRecord`` objects."""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Any, Iterable, Mapping

from pipelines.common import coerce_int, ensure_aware, parse_timestamp, round_half_up, utc_now
from pipelines.model import HourRecord
from pipelines.normalizer import Accumulator, group_observations, iter_batch_results

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE_TWO_M = 75.0
DEFAULT_TEMPERATURE_EIGHTY_M = 77.0

# Source variable -> (HourRecord field, default when absent)
VARIABLE_FIELDS: Mapping[str, tuple[str, float]] = {
    "precipitation": ("precipitation", 0.0),
    "rain": ("rain", 0.0),
    "showers": ("showers", 0.0),
    "precipitation_probability": ("precipitation_probability", 0.0),
    "evapotranspiration": ("evapotranspiration", 0.0),
    "wind_speed_10m": ("wind_speed_ten_m", 5.0),
    "wind_direction_10m": ("wind_direction_ten_m", 180.0),
    "soil_moisture_0_1cm": ("soil_moisture_zero_to_one_cm", 0.20),
    "soil_moisture_1_3cm": ("soil_moisture_one_to_three_cm", 0.22),
    "soil_moisture_3_9cm": ("soil_moisture_three_to_nine_cm", 0.24),
    "soil_moisture_9_27cm": ("soil_moisture_nine_to_twentyseven_cm", 0.26),
}


def _first_present(*candidates: float | None) -> float:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    raise ValueError("no candidate value supplied")


def _hours_from_now(metadata: Mapping[str, Any], forecast_time: datetime, now: datetime) -> int:
    declared = coerce_int(metadata.get("hours_from_now"))
    if declared is not None:
        return declared
    return int(round_half_up((forecast_time - now).total_seconds() / 3600))


def build_hour_record(
    key: str,
    accumulator: Accumulator,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> HourRecord:
    """Build one record, substituting documented defaults for absent variables."""

    built_at = ensure_aware(now or utc_now(), tz)
    values = accumulator.values
    forecast_time = parse_timestamp(accumulator.time, tz)
    if forecast_time is None:
        if accumulator.time:
            logger.debug("Unparseable time %r for group %s; using build time", accumulator.time, key)
        forecast_time = built_at

    temp_two = values.get("temperature_2m")
    temp_eighty = values.get("temperature_80m")
    fields: dict[str, float] = {
        "temperature_two_m": _first_present(temp_two, temp_eighty, DEFAULT_TEMPERATURE_TWO_M),
        "temperature_eighty_m": _first_present(
            temp_eighty, temp_two, DEFAULT_TEMPERATURE_EIGHTY_M
        ),
    }
    for variable, (field_name, default) in VARIABLE_FIELDS.items():
        fields[field_name] = _first_present(values.get(variable), default)

    forecast_date = accumulator.metadata.get("forecast_date")
    return HourRecord(
        id=f"weather_{key}_{int(built_at.timestamp() * 1000)}",
        forecast_time=forecast_time,
        forecast_date=str(forecast_date) if forecast_date else None,
        hours_from_now=_hours_from_now(accumulator.metadata, forecast_time, built_at),
        created_at=forecast_time,
        updated_at=forecast_time,
        **fields,
    )


def build_hour_records(
    batches: Iterable[Any],
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[HourRecord]:
    """Run normalization and record building over every batch of a delivery.

    Each batch gets its own grouping table; records from all batches are
    concatenated in delivery order.
    """

    built_at = now or utc_now()
    records: list[HourRecord] = []
    for observations in iter_batch_results(batches):
        table = group_observations(observations, now=built_at)
        logger.debug("Grouped %s observations into %s hours", len(observations), len(table))
        records.extend(
            build_hour_record(key, accumulator, now=built_at, tz=tz)
            for key, accumulator in table.items()
        )
    logger.info("Created %s weather records", len(records))
    return records


__all__ = [
    "VARIABLE_FIELDS",
    "DEFAULT_TEMPERATURE_TWO_M",
    "DEFAULT_TEMPERATURE_EIGHTY_M",
    "build_hour_record",
    "build_hour_records",
]

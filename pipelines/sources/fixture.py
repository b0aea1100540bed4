"""Static Open-Meteo fixture loader.

Turns an Open-Meteo style hourly payload into the same delivery shape the host
runtime sends, so development runs exercise the realtime pipeline unchanged.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any, Mapping

from pipelines.common import parse_timestamp, resolve_timezone, round_half_up, utc_now

logger = logging.getLogger(__name__)

DEFAULT_FIXTURE_PATH = Path(__file__).resolve().parent.parent / "fixtures" / "open_meteo_hourly.json"
DEFAULT_DELAY_SECONDS = 1.0

# Open-Meteo hourly key -> delivery variable name
OPEN_METEO_VARIABLES: Mapping[str, str] = {
    "temperature_2m": "temperature_2m",
    "temperature_80m": "temperature_80m",
    "precipitation": "precipitation",
    "rain": "rain",
    "showers": "showers",
    "precipitation_probability": "precipitation_probability",
    "evapotranspiration": "evapotranspiration",
    "wind_speed_10m": "wind_speed_10m",
    "wind_direction_10m": "wind_direction_10m",
    "soil_moisture_0_to_1cm": "soil_moisture_0_1cm",
    "soil_moisture_1_to_3cm": "soil_moisture_1_3cm",
    "soil_moisture_3_to_9cm": "soil_moisture_3_9cm",
    "soil_moisture_9_to_27cm": "soil_moisture_9_27cm",
}


def load_fixture(path: str | os.PathLike[str] | None = None) -> dict[str, Any]:
    """Read the fixture JSON from ``path`` or the packaged default."""

    fixture_path = Path(path) if path is not None else DEFAULT_FIXTURE_PATH
    with fixture_path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, Mapping) or not isinstance(payload.get("hourly"), Mapping):
        raise ValueError(f"Fixture {fixture_path} is missing the 'hourly' section.")
    return dict(payload)


def _payload_timezone(payload: Mapping[str, Any]) -> tzinfo | None:
    name = payload.get("timezone")
    if isinstance(name, str) and name:
        try:
            return resolve_timezone(name)
        except ValueError:
            logger.warning("Fixture timezone %r unknown; falling back to utc_offset_seconds", name)
    offset = payload.get("utc_offset_seconds")
    if isinstance(offset, (int, float)):
        return timezone(timedelta(seconds=offset))
    return None


def fixture_batches(
    payload: Mapping[str, Any], *, now: datetime | None = None
) -> list[dict[str, list[dict[str, Any]]]]:
    """Expand the hourly arrays into one delivery batch of observations."""

    hourly = payload["hourly"]
    units = payload.get("hourly_units") or {}
    tz = _payload_timezone(payload)
    current = now or utc_now()
    times = hourly.get("time") or []

    result: list[dict[str, Any]] = []
    for index, time_string in enumerate(times):
        forecast_time = parse_timestamp(str(time_string), tz)
        if forecast_time is None:
            logger.warning("Skipping fixture hour %s with unreadable time %r", index, time_string)
            continue
        date_part, _, time_part = str(time_string).partition("T")
        hour = time_part.split(":", 1)[0] or "00"
        metadata = {
            "hours_from_now": int(
                round_half_up((forecast_time - current).total_seconds() / 3600)
            ),
            "forecast_hour": index,
            "forecast_date": date_part,
            "forecast_time": f"{hour}:00",
        }
        for source_key, variable in OPEN_METEO_VARIABLES.items():
            series = hourly.get(source_key)
            if not isinstance(series, list) or index >= len(series):
                continue
            result.append(
                {
                    "variable": variable,
                    "value": series[index],
                    "time": forecast_time.isoformat(),
                    "group": f"{date_part}_{hour}",
                    "metadata": dict(metadata),
                    "unit": units.get(source_key),
                }
            )

    logger.info("Generated fixture delivery with %s data points", len(result))
    return [{"result": result}]


async def deliver_fixture(
    context,
    *,
    path: str | os.PathLike[str] | None = None,
    delay_seconds: float = DEFAULT_DELAY_SECONDS,
) -> int:
    """Wait ``delay_seconds`` and push the fixture into ``context`` as one delivery.

    A fixture that cannot be read is reported through ``context.report_error``.
    """

    await asyncio.sleep(delay_seconds)
    try:
        payload = load_fixture(path)
    except (OSError, ValueError) as exc:
        logger.error("Could not load fixture %s: %s", path or DEFAULT_FIXTURE_PATH, exc)
        context.report_error(exc)
        return 0
    records = context.deliver(fixture_batches(payload))
    return len(records)


__all__ = [
    "DEFAULT_FIXTURE_PATH",
    "DEFAULT_DELAY_SECONDS",
    "OPEN_METEO_VARIABLES",
    "load_fixture",
    "fixture_batches",
    "deliver_fixture",
]

"""In-memory DuckDB tables holding the current forecast snapshot.

Tables live only as long as the connection; nothing is written to disk here.
Timestamps are stored as naive UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

import duckdb

from pipelines.model import DayForecast, HourRecord

HOUR_RECORDS_TABLE = "hour_records"
DAY_FORECASTS_TABLE = "day_forecasts"

HOUR_RECORD_COLUMNS: tuple[str, ...] = (
    "id",
    "forecast_time",
    "forecast_date",
    "hours_from_now",
    "temperature_two_m",
    "temperature_eighty_m",
    "precipitation",
    "rain",
    "showers",
    "precipitation_probability",
    "evapotranspiration",
    "wind_speed_ten_m",
    "wind_direction_ten_m",
    "soil_moisture_zero_to_one_cm",
    "soil_moisture_one_to_three_cm",
    "soil_moisture_three_to_nine_cm",
    "soil_moisture_nine_to_twentyseven_cm",
    "created_at",
    "updated_at",
)

DAY_FORECAST_COLUMNS: tuple[str, ...] = (
    "forecast_date",
    "day_name",
    "min_temp",
    "max_temp",
    "avg_temp",
    "total_precipitation",
    "avg_precipitation_prob",
    "avg_wind_speed",
    "dominant_wind_direction",
    "hour_count",
)


def connect() -> duckdb.DuckDBPyConnection:
    """Open a private in-memory database with both snapshot tables created."""

    conn = duckdb.connect(":memory:")
    ensure_snapshot_tables(conn)
    return conn


def ensure_snapshot_tables(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {HOUR_RECORDS_TABLE} (
            id TEXT NOT NULL,
            forecast_time TIMESTAMP NOT NULL,
            forecast_date TEXT,
            hours_from_now INTEGER NOT NULL,
            temperature_two_m DOUBLE NOT NULL,
            temperature_eighty_m DOUBLE NOT NULL,
            precipitation DOUBLE NOT NULL,
            rain DOUBLE NOT NULL,
            showers DOUBLE NOT NULL,
            precipitation_probability DOUBLE NOT NULL,
            evapotranspiration DOUBLE NOT NULL,
            wind_speed_ten_m DOUBLE NOT NULL,
            wind_direction_ten_m DOUBLE NOT NULL,
            soil_moisture_zero_to_one_cm DOUBLE NOT NULL,
            soil_moisture_one_to_three_cm DOUBLE NOT NULL,
            soil_moisture_three_to_nine_cm DOUBLE NOT NULL,
            soil_moisture_nine_to_twentyseven_cm DOUBLE NOT NULL,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        )
        """
    )
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {DAY_FORECASTS_TABLE} (
            forecast_date TEXT PRIMARY KEY,
            day_name TEXT NOT NULL,
            min_temp DOUBLE,
            max_temp DOUBLE,
            avg_temp DOUBLE,
            total_precipitation DOUBLE NOT NULL,
            avg_precipitation_prob DOUBLE NOT NULL,
            avg_wind_speed DOUBLE NOT NULL,
            dominant_wind_direction DOUBLE NOT NULL,
            hour_count INTEGER NOT NULL
        )
        """
    )


def _utc_naive(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _serialize_record(record: HourRecord) -> tuple:
    data = record.model_dump()
    for column in ("forecast_time", "created_at", "updated_at"):
        data[column] = _utc_naive(data[column])
    return tuple(data[column] for column in HOUR_RECORD_COLUMNS)


def _serialize_day(day: DayForecast) -> tuple:
    return (
        day.date,
        day.day_name,
        day.min_temp,
        day.max_temp,
        day.avg_temp,
        day.total_precipitation,
        day.avg_precipitation_prob,
        day.avg_wind_speed,
        day.dominant_wind_direction,
        len(day.hourly_data),
    )


def _replace_rows(
    conn: duckdb.DuckDBPyConnection, table: str, columns: Sequence[str], rows: list[tuple]
) -> int:
    conn.execute(f"DELETE FROM {table}")
    if not rows:
        return 0
    placeholders = ", ".join("?" for _ in columns)
    conn.executemany(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        rows,
    )
    return len(rows)


def load_hour_records(conn: duckdb.DuckDBPyConnection, records: Iterable[HourRecord]) -> int:
    """Replace the hour table contents with ``records``; returns rows written."""

    rows = [_serialize_record(record) for record in records]
    return _replace_rows(conn, HOUR_RECORDS_TABLE, HOUR_RECORD_COLUMNS, rows)


def load_day_forecasts(conn: duckdb.DuckDBPyConnection, days: Iterable[DayForecast]) -> int:
    """Replace the day table contents with ``days`` (hourly detail omitted)."""

    rows = [_serialize_day(day) for day in days]
    return _replace_rows(conn, DAY_FORECASTS_TABLE, DAY_FORECAST_COLUMNS, rows)


__all__ = [
    "connect",
    "ensure_snapshot_tables",
    "load_hour_records",
    "load_day_forecasts",
    "HOUR_RECORDS_TABLE",
    "DAY_FORECASTS_TABLE",
    "HOUR_RECORD_COLUMNS",
    "DAY_FORECAST_COLUMNS",
]

"""Export helpers for forecast snapshots via DuckDB's COPY command."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import duckdb

from pipelines.model import DayForecast, HourRecord
from storage.db import (
    DAY_FORECASTS_TABLE,
    HOUR_RECORDS_TABLE,
    connect,
    load_day_forecasts,
    load_hour_records,
)

EXPORT_FORMATS = ("csv", "parquet")

_ORDERING = {
    HOUR_RECORDS_TABLE: "forecast_time",
    DAY_FORECASTS_TABLE: "forecast_date",
}


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _table_query(table: str) -> str:
    return f"SELECT * FROM {table} ORDER BY {_ORDERING[table]}"


def export_table(
    conn: duckdb.DuckDBPyConnection,
    table: str,
    destination: str | Path,
    *,
    fmt: str = "csv",
    include_header: bool = True,
) -> Path:
    """Materialize a snapshot table into a CSV or Parquet file."""

    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'.")
    if table not in _ORDERING:
        raise ValueError(f"Unknown snapshot table '{table}'.")

    dest_path = Path(destination)
    _ensure_parent(dest_path)
    sanitized_path = str(dest_path).replace("'", "''")
    if fmt == "csv":
        options = f"(FORMAT CSV, HEADER {'TRUE' if include_header else 'FALSE'})"
    else:
        options = "(FORMAT PARQUET)"
    conn.execute(f"COPY ({_table_query(table)}) TO '{sanitized_path}' {options}")
    return dest_path


def export_hour_records(
    records: Iterable[HourRecord], destination: str | Path, *, fmt: str = "csv"
) -> Path:
    conn = connect()
    try:
        load_hour_records(conn, records)
        return export_table(conn, HOUR_RECORDS_TABLE, destination, fmt=fmt)
    finally:
        conn.close()


def export_day_forecasts(
    days: Iterable[DayForecast], destination: str | Path, *, fmt: str = "csv"
) -> Path:
    conn = connect()
    try:
        load_day_forecasts(conn, days)
        return export_table(conn, DAY_FORECASTS_TABLE, destination, fmt=fmt)
    finally:
        conn.close()


__all__ = ["EXPORT_FORMATS", "export_table", "export_hour_records", "export_day_forecasts"]

"""Explicit widget state: the current forecast snapshot plus UI selections.

A ``WidgetContext`` is created by the host (CLI run or API lifespan) and handed
to everything that needs the forecast. Each non-empty delivery replaces the
snapshot in full; selections live alongside it but are never touched by the
pipeline itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Any, Iterable, Mapping

from pipelines.aggregate import WindDirectionMode, aggregate_days
from pipelines.builder import build_hour_records
from pipelines.common import utc_now
from pipelines.hourly import project_hourly
from pipelines.model import DayForecast, ForecastSnapshot, HourPoint, HourRecord, WeekPoint
from pipelines.week import project_week, validate_metric

logger = logging.getLogger(__name__)

DEFAULT_METRIC = "temperature"


class WidgetContext:
    """State shared between the ingestion pipeline and its consumers."""

    def __init__(
        self,
        *,
        tz: tzinfo | None = None,
        wind_direction_mode: WindDirectionMode = "circular",
    ) -> None:
        self.tz = tz
        self.wind_direction_mode = wind_direction_mode
        self.snapshot: ForecastSnapshot | None = None
        self.is_loading = True
        self.realtime_event_count = 0
        self.widget: Mapping[str, Any] | None = None
        self.last_error: str | None = None
        self.last_update: datetime | None = None
        self.selected_day: str | None = None
        self.selected_metric: str = DEFAULT_METRIC
        self.selected_hour_index: int | None = None

    # -- host callbacks -------------------------------------------------
    def start(self, widget_config: Mapping[str, Any] | None) -> None:
        logger.info("Widget started with configuration keys: %s", sorted(widget_config or {}))
        self.widget = dict(widget_config or {})

    def report_error(self, error: Any) -> None:
        """Record a host-reported transport error; the pipeline is not run."""

        logger.error("Widget error reported by host: %s", error)
        self.last_error = str(error)
        self.is_loading = False

    def deliver(self, batches: Iterable[Any], *, now: datetime | None = None) -> list[HourRecord]:
        """Process one realtime delivery and return the records it produced.

        Empty deliveries leave the current snapshot and loading flag untouched.
        """

        built_at = now or utc_now()
        records = build_hour_records(batches, now=built_at, tz=self.tz)
        self.realtime_event_count += 1
        if not records:
            logger.info("Delivery produced no weather records; keeping previous forecast")
            return records

        days = aggregate_days(records, tz=self.tz, wind_direction_mode=self.wind_direction_mode)
        self.snapshot = ForecastSnapshot(records=tuple(records), days=days, built_at=built_at)
        self.is_loading = False
        self.last_update = built_at
        if self.selected_day is None or self.find_day(self.selected_day) is None:
            self.selected_day = days[0].date
            self.selected_hour_index = None
        return records

    # -- derived views --------------------------------------------------
    @property
    def records(self) -> tuple[HourRecord, ...]:
        return self.snapshot.records if self.snapshot else ()

    @property
    def days(self) -> tuple[DayForecast, ...]:
        return self.snapshot.days if self.snapshot else ()

    def find_day(self, date_key: str) -> DayForecast | None:
        for day in self.days:
            if day.date == date_key:
                return day
        return None

    def selected_day_forecast(self) -> DayForecast | None:
        if self.selected_day is None:
            return None
        return self.find_day(self.selected_day)

    def week_series(self, metric: str | None = None) -> list[WeekPoint]:
        return project_week(self.days, metric or self.selected_metric)

    def hourly_series(self, date_key: str | None = None) -> list[HourPoint]:
        target = date_key or self.selected_day
        day = self.find_day(target) if target else None
        if day is None:
            raise ValueError(f"Unknown forecast day '{target}'.")
        selected = self.selected_hour_index if target == self.selected_day else None
        return project_hourly(day, selected, tz=self.tz)

    # -- selections -----------------------------------------------------
    def select_day(self, date_key: str) -> DayForecast:
        day = self.find_day(date_key)
        if day is None:
            raise ValueError(f"Unknown forecast day '{date_key}'.")
        if date_key != self.selected_day:
            self.selected_hour_index = None
        self.selected_day = date_key
        return day

    def select_metric(self, metric: str) -> str:
        self.selected_metric = validate_metric(metric)
        return self.selected_metric

    def toggle_hour(self, index: int) -> int | None:
        """Select ``index`` in the selected day, or clear it when already selected."""

        day = self.selected_day_forecast()
        if day is None or not 0 <= index < len(day.hourly_data):
            raise ValueError(f"Hour index {index} is out of range for the selected day.")
        self.selected_hour_index = None if index == self.selected_hour_index else index
        return self.selected_hour_index

    def state(self) -> dict[str, Any]:
        return {
            "is_loading": self.is_loading,
            "realtime_event_count": self.realtime_event_count,
            "record_count": len(self.records),
            "day_count": len(self.days),
            "selected_day": self.selected_day,
            "selected_metric": self.selected_metric,
            "selected_hour_index": self.selected_hour_index,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "last_error": self.last_error,
            "widget": dict(self.widget) if self.widget is not None else None,
        }


__all__ = ["WidgetContext", "DEFAULT_METRIC"]

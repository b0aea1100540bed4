"""Canonical data model for weather observations, hourly records and day summaries."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pipelines.common import coerce_float

Metric = Literal[
    "temperature",
    "precipitation",
    "wind",
    "humidity",
    "soil_moisture",
    "evapotranspiration",
]

METRICS: tuple[str, ...] = (
    "temperature",
    "precipitation",
    "wind",
    "humidity",
    "soil_moisture",
    "evapotranspiration",
)


class RawObservation(BaseModel):
    """A single scalar observation as delivered by the host runtime or fixture.

    Parsing never fails for a mapping input: unusable values are dropped to
    ``None`` so the builder can fall back to its defaults.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    variable: Optional[str] = Field(
        default=None, description="Source variable name (e.g. 'temperature_2m')."
    )
    value: Optional[float] = Field(
        default=None, description="Observed scalar value; absent when not numeric."
    )
    time: Optional[str] = Field(
        default=None, description="ISO8601 timestamp of the forecast hour."
    )
    group: Optional[str] = Field(
        default=None, description="Upstream grouping key shared by one forecast hour."
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Free-form attributes merged per group."
    )
    unit: Optional[str] = Field(default=None, description="Measurement unit, if sent.")

    @field_validator("value", mode="before")
    @classmethod
    def _lenient_value(cls, value: Any) -> float | None:
        return coerce_float(value)

    @field_validator("variable", "time", "group", "unit", mode="before")
    @classmethod
    def _lenient_text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list, tuple, set)):
            return None
        text = str(value)
        return text or None

    @field_validator("metadata", mode="before")
    @classmethod
    def _lenient_metadata(cls, value: Any) -> dict[str, Any]:
        if isinstance(value, dict):
            return {str(key): item for key, item in value.items()}
        return {}


class HourRecord(BaseModel):
    """Canonical hourly weather record; every numeric field is always populated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Synthetic identifier; not stable across rebuilds.")
    forecast_time: datetime = Field(..., description="Forecast hour (timezone aware).")
    forecast_date: Optional[str] = Field(default=None)
    hours_from_now: int = 0
    temperature_two_m: float
    temperature_eighty_m: float
    precipitation: float
    rain: float
    showers: float
    precipitation_probability: float
    evapotranspiration: float
    wind_speed_ten_m: float
    wind_direction_ten_m: float
    soil_moisture_zero_to_one_cm: float
    soil_moisture_one_to_three_cm: float
    soil_moisture_three_to_nine_cm: float
    soil_moisture_nine_to_twentyseven_cm: float
    created_at: datetime
    updated_at: datetime


class DayForecast(BaseModel):
    """Summary statistics for one local calendar day."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    date: str = Field(..., description="Local calendar day, YYYY-MM-DD.")
    day_name: str = Field(..., description="Short English weekday name (e.g. 'Mon').")
    min_temp: Optional[float] = None
    max_temp: Optional[float] = None
    avg_temp: Optional[float] = None
    total_precipitation: float = 0.0
    avg_precipitation_prob: float = 0.0
    avg_wind_speed: float = 0.0
    dominant_wind_direction: float = 0.0
    hourly_data: tuple[HourRecord, ...] = ()


class WeekPoint(BaseModel):
    """One day of the weekly trend line for a single metric family."""

    model_config = ConfigDict(frozen=True)

    day: str
    date: str
    metric: Metric
    value: Optional[float] = Field(
        default=None, description="Scalar plotted on the trend line for ``metric``."
    )
    min: Optional[int] = None
    max: Optional[int] = None
    precip: Optional[int] = None
    wind: Optional[int] = None
    humidity: Optional[int] = None
    soil_moisture: Optional[int] = None
    evapotranspiration: Optional[float] = None


class HourPoint(BaseModel):
    """Rounded per-hour values used by the day detail charts."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time: str
    temperature: int
    temperature_80m: int = Field(..., alias="temperature80m")
    precipitation: float
    rain: float
    showers: float
    precip_prob: int = Field(..., alias="precipProb")
    wind_speed: float = Field(..., alias="windSpeed")
    wind_direction: int = Field(..., alias="windDirection")
    humidity: float
    soil_moisture: float = Field(..., alias="soilMoisture")
    soil_moisture_1_to_3: float = Field(..., alias="soilMoisture1to3")
    soil_moisture_3_to_9: float = Field(..., alias="soilMoisture3to9")
    soil_moisture_9_to_27: float = Field(..., alias="soilMoisture9to27")
    evapotranspiration: float
    condition: str
    index: int
    is_selected: bool = Field(default=False, alias="isSelected")


class ForecastSnapshot(BaseModel):
    """Immutable pipeline output for one delivery; replaced wholesale on the next."""

    model_config = ConfigDict(frozen=True)

    records: tuple[HourRecord, ...] = ()
    days: tuple[DayForecast, ...] = ()
    built_at: datetime


__all__ = [
    "Metric",
    "METRICS",
    "RawObservation",
    "HourRecord",
    "DayForecast",
    "WeekPoint",
    "HourPoint",
    "ForecastSnapshot",
]

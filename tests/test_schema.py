from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from pipelines.model import DayForecast, HourRecord, RawObservation


def _record(**overrides):
    moment = datetime(2025, 6, 1, 6, tzinfo=timezone.utc)
    payload = {
        "id": "weather_2025-06-01_06_0",
        "forecast_time": moment,
        "temperature_two_m": 70.0,
        "temperature_eighty_m": 72.0,
        "precipitation": 0.0,
        "rain": 0.0,
        "showers": 0.0,
        "precipitation_probability": 10.0,
        "evapotranspiration": 0.004,
        "wind_speed_ten_m": 6.0,
        "wind_direction_ten_m": 200.0,
        "soil_moisture_zero_to_one_cm": 0.24,
        "soil_moisture_one_to_three_cm": 0.25,
        "soil_moisture_three_to_nine_cm": 0.27,
        "soil_moisture_nine_to_twentyseven_cm": 0.29,
        "created_at": moment,
        "updated_at": moment,
    }
    payload.update(overrides)
    return HourRecord(**payload)


def test_raw_observation_is_lenient():
    observation = RawObservation.model_validate(
        {
            "variable": "temperature_2m",
            "value": "not-a-number",
            "time": 1717221600,
            "group": 6,
            "metadata": ["unexpected"],
            "extra": "ignored",
        }
    )

    assert observation.value is None
    assert observation.time == "1717221600"
    assert observation.group == "6"
    assert observation.metadata == {}


def test_raw_observation_coerces_numeric_strings():
    observation = RawObservation.model_validate({"variable": "rain", "value": " 0.25 "})

    assert observation.value == pytest.approx(0.25)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), True])
def test_raw_observation_drops_unusable_numbers(value):
    assert RawObservation(variable="rain", value=value).value is None


def test_raw_observation_drops_integers_too_large_for_float():
    observation = RawObservation.model_validate({"variable": "rain", "value": 10**400})

    assert observation.value is None


def test_raw_observation_stringifies_metadata_keys():
    observation = RawObservation.model_validate(
        {"variable": "rain", "value": 1, "metadata": {1: "x", "forecast_date": "2025-06-01"}}
    )

    assert observation.metadata == {"1": "x", "forecast_date": "2025-06-01"}


def test_hour_record_is_immutable():
    record = _record()

    with pytest.raises(ValidationError):
        record.temperature_two_m = 10.0


def test_hour_record_serializes_iso_times():
    serialized = _record().model_dump(mode="json")

    assert serialized["forecast_time"] == "2025-06-01T06:00:00Z"
    assert serialized["hours_from_now"] == 0


def test_day_forecast_uses_camel_case_aliases():
    record = _record()
    day = DayForecast(
        date="2025-06-01",
        day_name="Sun",
        min_temp=70.0,
        max_temp=70.0,
        avg_temp=70.0,
        total_precipitation=0.0,
        avg_precipitation_prob=10.0,
        avg_wind_speed=6.0,
        dominant_wind_direction=200.0,
        hourly_data=(record,),
    )

    serialized = day.model_dump(mode="json", by_alias=True)

    assert serialized["dayName"] == "Sun"
    assert serialized["minTemp"] == 70.0
    assert serialized["avgPrecipitationProb"] == 10.0
    assert serialized["hourlyData"][0]["temperature_two_m"] == 70.0

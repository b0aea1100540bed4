from datetime import datetime, timedelta, timezone

import pytest

from pipelines.aggregate import aggregate_days
from pipelines.builder import build_hour_record
from pipelines.hourly import describe_conditions, hour_label, project_hourly
from pipelines.normalizer import Accumulator

UTC = timezone.utc


@pytest.mark.parametrize(
    ("hour", "label"),
    [(0, "12 AM"), (6, "6 AM"), (12, "12 PM"), (13, "1 PM"), (23, "11 PM")],
)
def test_hour_label(hour, label):
    assert hour_label(datetime(2024, 1, 1, hour, tzinfo=UTC), UTC) == label


@pytest.mark.parametrize(
    ("temperature", "precipitation", "probability", "expected"),
    [
        (90, 0.6, 0, "Heavy Rain"),
        (90, 0.2, 0, "Light Rain"),
        (90, 0.0, 80, "Cloudy"),
        (90, 0.0, 10, "Sunny"),
        (75, 0.0, 10, "Partly Cloudy"),
        (60, 0.0, 10, "Cloudy"),
        (40, 0.0, 10, "Cold"),
    ],
)
def test_describe_conditions(temperature, precipitation, probability, expected):
    assert describe_conditions(temperature, precipitation, probability) == expected


def test_project_hourly_rounds_for_display_and_marks_selection():
    start = datetime(2024, 1, 1, 6, tzinfo=UTC)
    records = []
    for offset, values in enumerate(
        [
            {"temperature_2m": 70.5, "precipitation": 0.126, "wind_speed_10m": 7.25},
            {"temperature_2m": 71.2, "soil_moisture_0_1cm": 0.2351, "evapotranspiration": 0.01234},
        ]
    ):
        moment = start + timedelta(hours=offset)
        accumulator = Accumulator(time=moment.isoformat(), group=None, values=values)
        records.append(build_hour_record(str(offset), accumulator, now=start, tz=UTC))
    day = aggregate_days(records, tz=UTC)[0]

    points = project_hourly(day, selected_index=1, tz=UTC)

    first, second = points
    assert first.time == "6 AM"
    assert first.temperature == 71
    assert first.temperature_80m == 71
    assert first.precipitation == pytest.approx(0.13)
    assert first.wind_speed == pytest.approx(7.3)
    assert first.condition == "Light Rain"
    assert not first.is_selected
    assert second.is_selected
    assert second.soil_moisture == pytest.approx(23.5)
    assert second.humidity == second.soil_moisture
    assert second.evapotranspiration == pytest.approx(0.012)

    dumped = second.model_dump(by_alias=True)
    assert dumped["isSelected"] is True
    assert "soilMoisture1to3" in dumped
    assert "precipProb" in dumped

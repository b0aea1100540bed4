from datetime import datetime, timedelta, timezone

import pytest

from pipelines.aggregate import aggregate_days, day_name, mean_wind_direction, summarize_day
from pipelines.builder import build_hour_record
from pipelines.normalizer import Accumulator

UTC = timezone.utc
NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _record(moment: datetime, **values):
    accumulator = Accumulator(time=moment.isoformat(), group=None, values=values)
    return build_hour_record(moment.isoformat(), accumulator, now=NOW, tz=UTC)


def _day_of_hours(temperatures, start=datetime(2024, 1, 1, tzinfo=UTC)):
    return [
        _record(start + timedelta(hours=index), temperature_2m=float(temp))
        for index, temp in enumerate(temperatures)
    ]


def test_single_day_statistics():
    records = _day_of_hours(range(50, 74))

    days = aggregate_days(records, tz=UTC)

    assert len(days) == 1
    day = days[0]
    assert day.date == "2024-01-01"
    assert day.day_name == "Mon"
    assert day.min_temp == 50
    assert day.max_temp == 73
    assert day.avg_temp == pytest.approx(61.5)
    assert day.min_temp <= day.avg_temp <= day.max_temp
    assert len(day.hourly_data) == 24


def test_day_with_temperatures_fifty_through_seventy_four():
    start = datetime(2024, 1, 1, tzinfo=UTC)
    records = _day_of_hours(range(50, 74), start=start)
    records.append(_record(start + timedelta(hours=23, minutes=30), temperature_2m=74.0))

    days = aggregate_days(records, tz=UTC)

    assert len(days) == 1
    day = days[0]
    assert day.min_temp == 50
    assert day.max_temp == 74
    assert day.avg_temp == pytest.approx(62)
    assert len(day.hourly_data) == 25


def test_partition_is_total_and_ordered():
    start = datetime(2024, 1, 1, 18, tzinfo=UTC)
    records = [_record(start + timedelta(hours=h), precipitation=0.1 * h) for h in range(30)]
    shuffled = records[::2] + records[1::2]

    days = aggregate_days(shuffled, tz=UTC)

    assert [d.date for d in days] == ["2024-01-01", "2024-01-02"]
    assert [len(d.hourly_data) for d in days] == [6, 24]
    ids = [r.id for d in days for r in d.hourly_data]
    assert sorted(ids) == sorted(r.id for r in records)
    assert len(ids) == len(set(ids))
    for day in days:
        times = [r.forecast_time for r in day.hourly_data]
        assert times == sorted(times)
        assert day.total_precipitation == pytest.approx(sum(r.precipitation for r in day.hourly_data))


def test_grouping_follows_the_local_zone():
    minus_six = timezone(timedelta(hours=-6))
    # 03:00 UTC on Jan 2 is still Jan 1 at UTC-6
    records = [_record(datetime(2024, 1, 2, 3, tzinfo=UTC))]

    assert aggregate_days(records, tz=UTC)[0].date == "2024-01-02"
    assert aggregate_days(records, tz=minus_six)[0].date == "2024-01-01"


def test_means_of_probability_and_wind():
    start = datetime(2024, 1, 1, tzinfo=UTC)
    records = [
        _record(start + timedelta(hours=h), wind_speed_10m=speed, precipitation_probability=prob)
        for h, (speed, prob) in enumerate([(5, 10), (10, 20), (15, 60)])
    ]

    day = aggregate_days(records, tz=UTC)[0]

    assert day.avg_wind_speed == pytest.approx(10)
    assert day.avg_precipitation_prob == pytest.approx(30)


def test_circular_wind_direction_handles_north():
    assert mean_wind_direction([350, 10]) == pytest.approx(0.0, abs=1e-9)
    assert mean_wind_direction([90, 180]) == pytest.approx(135.0)
    assert mean_wind_direction([340, 350, 20]) == pytest.approx(356.53, abs=0.01)


def test_arithmetic_wind_direction_mode():
    assert mean_wind_direction([350, 10], "arithmetic") == pytest.approx(180.0)


def test_cancelling_directions_fall_back_to_arithmetic_mean():
    assert mean_wind_direction([0, 180]) == pytest.approx(90.0)


def test_unknown_wind_mode_is_rejected():
    with pytest.raises(ValueError):
        mean_wind_direction([10], "median")


def test_summarize_day_without_records_marks_temperatures_absent():
    day = summarize_day("2024-01-03", [])

    assert day.min_temp is None
    assert day.max_temp is None
    assert day.avg_temp is None
    assert day.total_precipitation == 0
    assert day.day_name == "Wed"


def test_day_name_is_locale_independent():
    assert [day_name(f"2024-01-0{d}") for d in range(1, 8)] == [
        "Mon",
        "Tue",
        "Wed",
        "Thu",
        "Fri",
        "Sat",
        "Sun",
    ]

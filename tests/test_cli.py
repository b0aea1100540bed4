import json
from datetime import datetime, timedelta, timezone

import duckdb
import pytest

from jobs.__main__ import main
from jobs.replay import read_delivery

START = datetime(2024, 3, 10, tzinfo=timezone.utc)


@pytest.fixture()
def delivery_file(tmp_path):
    result = []
    for offset in range(26):
        moment = START + timedelta(hours=offset)
        group = moment.strftime("%Y-%m-%d_%H")
        result.append({"variable": "temperature_2m", "value": 40 + offset, "time": moment.isoformat(), "group": group})
        result.append({"variable": "precipitation_probability", "value": 20, "time": moment.isoformat(), "group": group})
    path = tmp_path / "delivery.json"
    path.write_text(json.dumps([{"result": result}]), encoding="utf-8")
    return path


def test_read_delivery_accepts_single_batch(tmp_path):
    path = tmp_path / "batch.json"
    path.write_text(json.dumps({"result": [{"variable": "rain", "value": 1}]}), encoding="utf-8")

    assert read_delivery(path) == [{"result": [{"variable": "rain", "value": 1}]}]


def test_read_delivery_rejects_other_payloads(tmp_path):
    path = tmp_path / "other.json"
    path.write_text(json.dumps({"daily": {}}), encoding="utf-8")

    with pytest.raises(ValueError):
        read_delivery(path)


def test_summarize_prints_one_line_per_day(delivery_file, capsys):
    exit_code = main(["summarize", "--input", str(delivery_file), "--timezone", "UTC"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert exit_code == 0
    assert len(lines) == 2
    assert lines[0].startswith("2024-03-10 Sun: high=63° low=40°")
    assert "hours=24" in lines[0]
    assert "hours=2" in lines[1]


def test_week_prints_metric_values(delivery_file, capsys):
    exit_code = main(
        ["week", "--input", str(delivery_file), "--timezone", "UTC", "--metric", "precipitation"]
    )

    lines = capsys.readouterr().out.strip().splitlines()
    assert exit_code == 0
    assert lines == ["2024-03-10 Sun: 20", "2024-03-11 Mon: 20"]


def test_export_days_to_parquet(delivery_file, tmp_path):
    output = tmp_path / "days.parquet"

    exit_code = main(
        [
            "export",
            "--input",
            str(delivery_file),
            "--timezone",
            "UTC",
            "--what",
            "days",
            "--format",
            "parquet",
            "--output",
            str(output),
        ]
    )

    assert exit_code == 0
    con = duckdb.connect()
    try:
        rows = con.execute(
            "SELECT forecast_date, max_temp FROM read_parquet(?) ORDER BY forecast_date",
            [str(output)],
        ).fetchall()
    finally:
        con.close()
    assert rows == [("2024-03-10", 63.0), ("2024-03-11", 65.0)]


def test_empty_delivery_reports_no_data(tmp_path, capsys):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps([{"result": []}]), encoding="utf-8")

    assert main(["summarize", "--input", str(path)]) == 1
    assert "No forecast data available." in capsys.readouterr().out


def test_bad_timezone_is_a_usage_error(delivery_file):
    with pytest.raises(SystemExit):
        main(["summarize", "--input", str(delivery_file), "--timezone", "Nowhere/Else"])

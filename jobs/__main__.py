"""Command-line entrypoint for forecast jobs."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import replace

from jobs.config import load_config
from jobs.replay import replay
from pipelines.hourly import describe_day
from pipelines.model import METRICS, DayForecast
from storage.exports import EXPORT_FORMATS, export_day_forecasts, export_hour_records


def _format_temp(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.0f}°"


def _format_day(day: DayForecast) -> str:
    return (
        f"{day.date} {day.day_name}: high={_format_temp(day.max_temp)} "
        f"low={_format_temp(day.min_temp)} precip={day.total_precipitation:.2f} "
        f"chance={day.avg_precipitation_prob:.0f}% wind={day.avg_wind_speed:.1f} "
        f"dir={day.dominant_wind_direction:.0f}° hours={len(day.hourly_data)} "
        f"({describe_day(day)})"
    )


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--input",
        help="Delivery JSON file or Open-Meteo payload (defaults to the configured fixture)",
    )
    parser.add_argument("--timezone", help="IANA zone used to group hours into days")
    parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG, INFO)",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Weather forecast widget job runner")
    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize_parser = subparsers.add_parser(
        "summarize", help="Run the pipeline and print one line per forecast day"
    )
    _add_common(summarize_parser)

    week_parser = subparsers.add_parser("week", help="Print the weekly trend for a metric")
    _add_common(week_parser)
    week_parser.add_argument("--metric", choices=METRICS, default="temperature")

    export_parser = subparsers.add_parser(
        "export", help="Export hour records or day summaries to CSV/Parquet"
    )
    _add_common(export_parser)
    export_parser.add_argument("--what", choices=("hours", "days"), default="hours")
    export_parser.add_argument("--format", choices=EXPORT_FORMATS, default="csv")
    export_parser.add_argument("--output", required=True, help="Destination file path")

    args = parser.parse_args(argv)

    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    try:
        config = load_config()
        if args.timezone:
            config = replace(config, timezone=args.timezone)
        context = replay(args.input, config=config)
    except ValueError as exc:
        parser.error(str(exc))

    if not context.days:
        print("No forecast data available.")
        return 1

    if args.command == "summarize":
        for day in context.days:
            print(_format_day(day))
        return 0

    if args.command == "week":
        for point in context.week_series(args.metric):
            value = "n/a" if point.value is None else f"{point.value:g}"
            print(f"{point.date} {point.day}: {value}")
        return 0

    if args.command == "export":
        if args.what == "hours":
            dest = export_hour_records(context.records, args.output, fmt=args.format)
        else:
            dest = export_day_forecasts(context.days, args.output, fmt=args.format)
        print(f"Wrote {args.what} to {dest}")
        return 0

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

"""Job that replays a recorded delivery (or the fixture) through the pipeline."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from jobs.config import WidgetConfig, load_config
from pipelines.context import WidgetContext
from pipelines.sources.fixture import fixture_batches, load_fixture

logger = logging.getLogger(__name__)


def build_context(config: WidgetConfig | None = None) -> WidgetContext:
    config = config or load_config()
    return WidgetContext(tz=config.tzinfo, wind_direction_mode=config.wind_direction_mode)


def read_delivery(path: str | os.PathLike[str]) -> list[Any]:
    """Load a delivery file.

    Accepts either a recorded host delivery (a list of ``{"result": [...]}``
    batches) or an Open-Meteo hourly payload, which is expanded the same way
    the fixture is.
    """

    source = Path(path)
    with source.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    if isinstance(payload, dict) and "hourly" in payload:
        return fixture_batches(payload)
    if isinstance(payload, dict) and "result" in payload:
        return [payload]
    if isinstance(payload, list):
        return payload
    raise ValueError(f"{source} is neither a delivery list nor an Open-Meteo payload.")


def replay(
    path: str | os.PathLike[str] | None = None,
    *,
    config: WidgetConfig | None = None,
) -> WidgetContext:
    """Run one delivery through a fresh context and return it."""

    config = config or load_config()
    context = build_context(config)
    if path is not None:
        batches = read_delivery(path)
        logger.info("Replaying delivery from %s (%s batches)", path, len(batches))
    else:
        batches = fixture_batches(load_fixture(config.fixture_path))
        logger.info("Replaying fixture %s", config.fixture_path or "(packaged)")
    context.deliver(batches)
    if context.is_loading:
        logger.warning("Delivery contained no usable observations; forecast still loading.")
    return context


def main(path: str | None = None) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    context = replay(path)
    logger.info(
        "Replay finished (records=%s, days=%s).", len(context.records), len(context.days)
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

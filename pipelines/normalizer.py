"""Merge a delivered batch of scalar observations into per-hour accumulators.

Observations arrive unordered and one variable at a time. Every observation
that describes the same forecast hour carries the same group key, so the
normalizer folds them into a single accumulator keyed by that value. The
table lives only for the duration of one batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from pipelines.common import utc_now
from pipelines.model import RawObservation

logger = logging.getLogger(__name__)


@dataclass
class Accumulator:
    """Variables collected for one group key."""

    time: str | None
    group: str | None
    metadata: dict[str, Any] = field(default_factory=dict)
    values: dict[str, float | None] = field(default_factory=dict)


def group_key(observation: RawObservation, now: datetime | None = None) -> str:
    """Resolve the hour an observation belongs to.

    Precedence: explicit ``group``, then ``metadata.forecast_time``, then the
    observation ``time`` and finally the current instant.
    """

    forecast_time = observation.metadata.get("forecast_time")
    if observation.group:
        return observation.group
    if forecast_time:
        return str(forecast_time)
    if observation.time:
        return observation.time
    return (now or utc_now()).isoformat()


def parse_observation(raw: Any) -> RawObservation | None:
    if isinstance(raw, RawObservation):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning("Skipping observation that is not a mapping: %r", raw)
        return None
    try:
        return RawObservation.model_validate(dict(raw))
    except ValidationError as exc:
        logger.warning("Skipping unreadable observation %r: %s", raw, exc)
        return None


def group_observations(
    observations: Iterable[Any], *, now: datetime | None = None
) -> dict[str, Accumulator]:
    """Fold observations into ``group key -> Accumulator`` in first-seen order."""

    table: dict[str, Accumulator] = {}
    for raw in observations:
        observation = parse_observation(raw)
        if observation is None:
            continue
        key = group_key(observation, now)
        accumulator = table.get(key)
        if accumulator is None:
            accumulator = Accumulator(time=observation.time, group=observation.group)
            table[key] = accumulator
        if observation.variable:
            accumulator.values[observation.variable] = observation.value
        else:
            logger.debug("Observation without variable seeded group %s", key)
        accumulator.metadata.update(observation.metadata)
    return table


def iter_batch_results(batches: Iterable[Any]) -> Iterable[list[Any]]:
    """Yield the non-empty ``result`` lists of a host delivery."""

    for batch in batches or ():
        if isinstance(batch, Mapping):
            result = batch.get("result")
        else:
            result = getattr(batch, "result", None)
        if not result:
            continue
        if not isinstance(result, (list, tuple)):
            logger.warning("Ignoring batch whose result is not a list: %r", type(result))
            continue
        yield list(result)


__all__ = [
    "Accumulator",
    "group_key",
    "parse_observation",
    "group_observations",
    "iter_batch_results",
]

"""Environment-driven configuration for the forecast widget."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Mapping

from dotenv import load_dotenv

from pipelines.aggregate import WIND_DIRECTION_MODES
from pipelines.common import coerce_float, resolve_timezone
from pipelines.sources.fixture import DEFAULT_DELAY_SECONDS

load_dotenv()

WIDGET_MODES = ("auto", "fixture", "live")
DEFAULT_HEADER_COLOR = "#005194"


@dataclass(frozen=True)
class WidgetConfig:
    """Settings that shape how deliveries are sourced and aggregated."""

    mode: str = "auto"
    live_host: bool = False
    fixture_path: str | None = None
    fixture_delay_seconds: float = DEFAULT_DELAY_SECONDS
    timezone: str | None = None
    wind_direction_mode: str = "circular"
    header_color: str = DEFAULT_HEADER_COLOR

    @property
    def use_fixture(self) -> bool:
        """Fixture data is used explicitly or whenever no live host is attached."""

        if self.mode == "auto":
            return not self.live_host
        return self.mode == "fixture"

    @property
    def tzinfo(self) -> tzinfo | None:
        return resolve_timezone(self.timezone)

    def ready_payload(self) -> dict[str, dict[str, str]]:
        return {"header": {"color": self.header_color}}


def _flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def load_config(environ: Mapping[str, str] | None = None) -> WidgetConfig:
    """Build a ``WidgetConfig`` from environment variables, validating each one."""

    env = os.environ if environ is None else environ

    mode = (env.get("WIDGET_MODE") or "auto").strip().lower()
    if mode not in WIDGET_MODES:
        raise ValueError(f"WIDGET_MODE must be one of {', '.join(WIDGET_MODES)} (got '{mode}').")

    raw_delay = env.get("WIDGET_FIXTURE_DELAY_SECONDS")
    delay = DEFAULT_DELAY_SECONDS if raw_delay is None else coerce_float(raw_delay)
    if delay is None or delay < 0:
        raise ValueError(
            f"WIDGET_FIXTURE_DELAY_SECONDS must be a non-negative number (got '{raw_delay}')."
        )

    wind_mode = (env.get("WIND_DIRECTION_MODE") or "circular").strip().lower()
    if wind_mode not in WIND_DIRECTION_MODES:
        raise ValueError(
            f"WIND_DIRECTION_MODE must be one of {', '.join(WIND_DIRECTION_MODES)} (got '{wind_mode}')."
        )

    timezone_name = (env.get("WIDGET_TIMEZONE") or "").strip() or None
    try:
        resolve_timezone(timezone_name)
    except ValueError as exc:
        raise ValueError(f"WIDGET_TIMEZONE is invalid: {exc}") from exc

    return WidgetConfig(
        mode=mode,
        live_host=_flag(env.get("WIDGET_LIVE")),
        fixture_path=env.get("WIDGET_FIXTURE_PATH") or None,
        fixture_delay_seconds=delay,
        timezone=timezone_name,
        wind_direction_mode=wind_mode,
        header_color=env.get("WIDGET_HEADER_COLOR") or DEFAULT_HEADER_COLOR,
    )


__all__ = ["WidgetConfig", "WIDGET_MODES", "DEFAULT_HEADER_COLOR", "load_config"]

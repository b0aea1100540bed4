"""FastAPI host for the forecast widget: realtime callbacks and derived views."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastapi import BackgroundTasks, Body, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from dotenv import load_dotenv
from pydantic import BaseModel

from jobs.config import load_config
from jobs.replay import build_context
from pipelines.context import WidgetContext
from pipelines.sources.fixture import deliver_fixture
from pipelines.week import validate_metric
from storage.exports import EXPORT_FORMATS, export_day_forecasts, export_hour_records

ALLOWED_FORMATS = {"json", *EXPORT_FORMATS}
load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    app.state.config = config
    context = build_context(config)
    app.state.context = context
    fixture_task: asyncio.Task | None = None
    if config.use_fixture:
        logger.info("Development mode detected - delivering fixture data")
        fixture_task = asyncio.create_task(
            deliver_fixture(
                context,
                path=config.fixture_path,
                delay_seconds=config.fixture_delay_seconds,
            )
        )

        def _collect(task: asyncio.Task) -> None:
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                logger.error("Fixture delivery failed", exc_info=exc)
                context.report_error(exc)

        fixture_task.add_done_callback(_collect)
    app.state.fixture_task = fixture_task
    yield
    if fixture_task is not None and not fixture_task.done():
        fixture_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await fixture_task


app = FastAPI(title="Weather Forecast Widget API", version="0.1.0", lifespan=lifespan)


def _configure_cors() -> None:
    raw_origins = os.getenv("API_CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )


_configure_cors()


class SelectionUpdate(BaseModel):
    day: Optional[str] = None
    metric: Optional[str] = None
    hour: Optional[int] = None


def _context(request: Request) -> WidgetContext:
    return request.app.state.context


def _check_format(format: str) -> str:
    fmt = format.lower()
    if fmt not in ALLOWED_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported format '{format}'.")
    return fmt


def _file_response(
    background_tasks: BackgroundTasks, fmt: str, stem: str, writer
) -> FileResponse:
    suffix = f".{fmt}"
    media_type = "text/csv" if fmt == "csv" else "application/vnd.apache.parquet"
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        dest = Path(tmp.name)
    writer(dest, fmt)

    def _cleanup(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    background_tasks.add_task(_cleanup, dest)
    return FileResponse(
        dest, media_type=media_type, filename=f"{stem}{suffix}", background=background_tasks
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/widget/start")
async def widget_start(request: Request, widget_config: Optional[dict[str, Any]] = Body(None)):
    _context(request).start(widget_config)
    return request.app.state.config.ready_payload()


@app.post("/widget/realtime")
async def widget_realtime(request: Request, batches: list[Any] = Body(...)):
    context = _context(request)
    records = context.deliver(batches)
    return {
        "created": len(records),
        "realtime_event_count": context.realtime_event_count,
        "is_loading": context.is_loading,
    }


@app.post("/widget/error")
async def widget_error(request: Request, error: Any = Body(...)):
    _context(request).report_error(error)
    return {"is_loading": _context(request).is_loading}


@app.get("/widget/state")
async def widget_state(request: Request) -> dict[str, Any]:
    return _context(request).state()


@app.put("/widget/selection")
async def widget_selection(request: Request, update: SelectionUpdate):
    context = _context(request)
    if update.metric is not None:
        try:
            validate_metric(update.metric)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    target_day = context.selected_day
    if update.day is not None:
        if context.find_day(update.day) is None:
            raise HTTPException(
                status_code=404, detail=f"Unknown forecast day '{update.day}'."
            )
        target_day = update.day
    if update.hour is not None:
        day = context.find_day(target_day) if target_day else None
        if day is None or not 0 <= update.hour < len(day.hourly_data):
            raise HTTPException(
                status_code=400,
                detail=f"Hour index {update.hour} is out of range for the selected day.",
            )

    # Nothing is applied until every requested change has been validated.
    if update.metric is not None:
        context.select_metric(update.metric)
    if update.day is not None:
        context.select_day(update.day)
    if update.hour is not None:
        context.toggle_hour(update.hour)
    return context.state()


@app.get("/forecast/hours")
def forecast_hours(
    request: Request,
    background_tasks: BackgroundTasks,
    format: str = Query("json", description="Response format: json, csv, or parquet"),
):
    fmt = _check_format(format)
    records = _context(request).records
    if fmt == "json":
        return JSONResponse(
            content={
                "count": len(records),
                "items": [record.model_dump(mode="json") for record in records],
            }
        )
    return _file_response(
        background_tasks,
        fmt,
        "hours",
        lambda dest, fmt: export_hour_records(records, dest, fmt=fmt),
    )


@app.get("/forecast/days")
def forecast_days(
    request: Request,
    background_tasks: BackgroundTasks,
    format: str = Query("json", description="Response format: json, csv, or parquet"),
):
    fmt = _check_format(format)
    context = _context(request)
    days = context.days
    if fmt == "json":
        return JSONResponse(
            content={
                "count": len(days),
                "selected_day": context.selected_day,
                "items": [day.model_dump(mode="json", by_alias=True) for day in days],
            }
        )
    return _file_response(
        background_tasks,
        fmt,
        "days",
        lambda dest, fmt: export_day_forecasts(days, dest, fmt=fmt),
    )


@app.get("/forecast/days/{date}/hourly")
async def forecast_hourly(
    request: Request,
    date: str,
    selected_hour: int | None = Query(None, ge=0, description="Hour index to highlight"),
):
    context = _context(request)
    try:
        points = context.hourly_series(date)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if selected_hour is not None:
        points = [
            point.model_copy(update={"is_selected": point.index == selected_hour})
            for point in points
        ]
    return {
        "date": date,
        "count": len(points),
        "items": [point.model_dump(mode="json", by_alias=True) for point in points],
    }


@app.get("/forecast/week")
async def forecast_week(
    request: Request,
    metric: str | None = Query(None, description="Metric family for the trend line"),
):
    context = _context(request)
    try:
        points = context.week_series(metric)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "metric": metric or context.selected_metric,
        "count": len(points),
        "items": [point.model_dump(mode="json", exclude_none=True) for point in points],
    }

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from http import HTTPStatus
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.lib.alerts import (
    AlertDispatcher,
    AlertEngine,
    AlertNotFoundError,
    FrequencyType,
    ScheduleSpec,
    calculate_next_run,
    format_schedule,
)
from app.lib.alerts.models import MAX_INTERVAL_HOURS, AlertDraft
from app.lib.alerts.registry import build_seed_alerts
from app.lib.clients import build_content_generator
from app.lib.config import AppConfig, app_config
from app.lib.logging_utils import setup_logging
from app.lib.schemas import (
    AlertCreateRequest,
    AlertLogResponse,
    AlertResponse,
    AlertUpdateRequest,
    SchedulePreviewResponse,
    ScheduleSchema,
    SettingsRequest,
    SettingsResponse,
    StatsResponse,
    TriggerResponse,
)


PROJECT_ROOT = Path(__file__).resolve().parent
CONFIG_ENV_VAR = "ALERTGENIUS_CONFIG"

app = FastAPI(title="AlertGenius API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger = logging.getLogger("alertgenius.api")


_ERROR_CODE_MAP = {
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "validation_error",
    status.HTTP_503_SERVICE_UNAVAILABLE: "unavailable",
}


def _status_to_error_code(status_code: int) -> str:
    return _ERROR_CODE_MAP.get(status_code, f"http_{status_code}")


def _build_error_payload(status_code: int, detail: Any) -> Dict[str, Any]:
    code = _status_to_error_code(status_code)
    message: Optional[str] = None
    extra: Optional[Any] = None

    if isinstance(detail, dict):
        code = str(detail.get("code") or code)
        message = detail.get("message") or detail.get("detail")
        remaining = {k: v for k, v in detail.items() if k not in {"code", "message", "detail"}}
        if remaining:
            extra = remaining
    elif isinstance(detail, list):
        extra = detail
    elif detail:
        message = str(detail)

    if message is None:
        try:
            message = HTTPStatus(status_code).phrase
        except ValueError:
            message = "Request failed"

    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if extra is not None:
        payload["error"]["details"] = extra
    return payload


@app.exception_handler(HTTPException)
async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    payload = _build_error_payload(exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=payload)


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    detail = {
        "code": "validation_error",
        "message": "Request validation failed",
        "fields": [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ],
    }
    payload = _build_error_payload(status.HTTP_422_UNPROCESSABLE_ENTITY, detail)
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)


@app.exception_handler(AlertNotFoundError)
async def _alert_not_found_handler(request: Request, exc: AlertNotFoundError) -> JSONResponse:
    payload = _build_error_payload(status.HTTP_404_NOT_FOUND, str(exc))
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=payload)


def _load_app_config() -> AppConfig:
    override = os.getenv(CONFIG_ENV_VAR)
    config_path = Path(override) if override else PROJECT_ROOT / "config.yaml"
    if not config_path.exists():
        if override:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        logger.warning("No config.yaml found at %s; using defaults", config_path)
        return AppConfig.from_dict({})
    return app_config(str(config_path))


@app.on_event("startup")
async def startup_event() -> None:
    config = _load_app_config().alertgenius

    log_base = Path(config.logging.base_dir) if config.logging.base_dir else PROJECT_ROOT
    setup_logging(log_base, level=config.logging.level, console=config.logging.console)

    generator = build_content_generator(config.generation)
    engine = AlertEngine(
        generator,
        settings=config.settings,
        calendar_tz=config.dispatcher.tzinfo,
        generation_timeout=config.generation.timeout_seconds,
    )
    seeded = engine.create_alerts(build_seed_alerts(config.alerts))
    if seeded:
        logger.info("Seeded %s alert(s)", len(seeded))

    dispatcher = AlertDispatcher(engine, tick_seconds=config.dispatcher.tick_seconds)
    dispatcher.start()

    app.state.app_config = config
    app.state.generator = generator
    app.state.alert_engine = engine
    app.state.dispatcher = dispatcher


@app.on_event("shutdown")
async def shutdown_event() -> None:
    dispatcher: AlertDispatcher | None = getattr(app.state, "dispatcher", None)
    if dispatcher is not None:
        await dispatcher.stop()
    generator = getattr(app.state, "generator", None)
    if generator is not None:
        await generator.aclose()


def _ensure_engine(request: Request) -> AlertEngine:
    engine: Optional[AlertEngine] = getattr(request.app.state, "alert_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application not initialized",
        )
    return engine


def _alert_response(engine: AlertEngine, alert) -> AlertResponse:
    return AlertResponse.from_alert(alert, is_processing=engine.is_processing(alert.id))


@app.get(
    "/health",
    summary="Simple readiness probe.",
)
def health_check(request: Request) -> Dict[str, Any]:
    _ensure_engine(request)
    dispatcher: Optional[AlertDispatcher] = getattr(request.app.state, "dispatcher", None)
    now = datetime.now(timezone.utc)
    return {
        "status": "ok",
        "timestamp": now.isoformat(),
        "dispatcher_running": bool(dispatcher and dispatcher.running),
    }


@app.get("/alerts", response_model=List[AlertResponse])
def list_alerts(request: Request) -> List[AlertResponse]:
    engine = _ensure_engine(request)
    return [_alert_response(engine, alert) for alert in engine.list_alerts()]


@app.post("/alerts", response_model=AlertResponse, status_code=status.HTTP_201_CREATED)
def create_alert(request: Request, payload: AlertCreateRequest) -> AlertResponse:
    engine = _ensure_engine(request)
    alert = engine.create_alert(
        AlertDraft(
            name=payload.name,
            prompt=payload.prompt,
            email=payload.email,
            schedule=payload.schedule.to_spec(),
            is_ai_generated=payload.is_ai_generated,
        )
    )
    return _alert_response(engine, alert)


@app.get("/alerts/{alert_id}", response_model=AlertResponse)
def get_alert(request: Request, alert_id: str) -> AlertResponse:
    engine = _ensure_engine(request)
    return _alert_response(engine, engine.get_alert(alert_id))


@app.patch("/alerts/{alert_id}", response_model=AlertResponse)
def update_alert(request: Request, alert_id: str, payload: AlertUpdateRequest) -> AlertResponse:
    engine = _ensure_engine(request)
    alert = engine.update_alert(
        alert_id,
        name=payload.name,
        prompt=payload.prompt,
        email=payload.email,
        schedule=payload.schedule.to_spec() if payload.schedule else None,
        is_ai_generated=payload.is_ai_generated,
    )
    return _alert_response(engine, alert)


@app.delete("/alerts/{alert_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_alert(request: Request, alert_id: str) -> Response:
    engine = _ensure_engine(request)
    engine.delete_alert(alert_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/alerts/{alert_id}/toggle", response_model=AlertResponse)
def toggle_alert(request: Request, alert_id: str) -> AlertResponse:
    engine = _ensure_engine(request)
    return _alert_response(engine, engine.toggle_alert(alert_id))


@app.post(
    "/alerts/{alert_id}/trigger",
    response_model=TriggerResponse,
    summary="Run an alert now. A no-op while the alert is already processing.",
)
async def trigger_alert(request: Request, alert_id: str) -> TriggerResponse:
    engine = _ensure_engine(request)
    entry = await engine.trigger(alert_id)
    if entry is None:
        return TriggerResponse(triggered=False)
    return TriggerResponse(triggered=True, log=AlertLogResponse.from_log(entry))


@app.get("/logs", response_model=List[AlertLogResponse])
def list_logs(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    alert_id: Optional[str] = Query(None, alias="alertId"),
) -> List[AlertLogResponse]:
    engine = _ensure_engine(request)
    return [
        AlertLogResponse.from_log(entry)
        for entry in engine.list_logs(limit=limit, alert_id=alert_id)
    ]


@app.get("/stats", response_model=StatsResponse)
def get_stats(request: Request) -> StatsResponse:
    engine = _ensure_engine(request)
    return StatsResponse.from_stats(engine.stats())


@app.get("/settings", response_model=SettingsResponse)
def get_settings(request: Request) -> SettingsResponse:
    engine = _ensure_engine(request)
    return SettingsResponse.from_settings(engine.settings)


@app.put("/settings", response_model=SettingsResponse)
def update_settings(request: Request, payload: SettingsRequest) -> SettingsResponse:
    engine = _ensure_engine(request)
    updated = engine.update_settings(payload.to_settings(engine.settings))
    logger.info("Settings updated", extra={"delivery_method": updated.delivery_method})
    return SettingsResponse.from_settings(updated)


@app.get(
    "/schedules/preview",
    response_model=SchedulePreviewResponse,
    summary="Label and upcoming trigger times for a schedule, computed from now.",
)
def preview_schedule(
    request: Request,
    kind: FrequencyType = Query(..., alias="type"),
    interval_hours: Optional[int] = Query(None, alias="intervalHours", ge=1, le=MAX_INTERVAL_HOURS),
    day_of_week: Optional[int] = Query(None, alias="dayOfWeek", ge=0, le=6),
    day_of_month: Optional[int] = Query(None, alias="dayOfMonth", ge=1, le=31),
    month: Optional[int] = Query(None, ge=0, le=11),
    count: int = Query(3, ge=1, le=24),
) -> SchedulePreviewResponse:
    engine = _ensure_engine(request)
    config = getattr(request.app.state, "app_config", None)
    calendar_tz = config.dispatcher.tzinfo if config is not None else None
    spec = ScheduleSpec(
        kind=kind,
        interval_hours=interval_hours,
        day_of_week=day_of_week,
        day_of_month=day_of_month,
        month=month,
    )

    upcoming: List[datetime] = []
    reference = engine.clock.now()
    for _ in range(count):
        reference = calculate_next_run(spec, reference, tz=calendar_tz)
        upcoming.append(reference)

    return SchedulePreviewResponse(
        schedule=ScheduleSchema.from_spec(spec),
        label=format_schedule(spec),
        next_runs=upcoming,
    )

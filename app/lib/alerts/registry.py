from __future__ import annotations

from typing import Any, Dict, List, Optional

from .models import AlertDraft, FrequencyType, ScheduleSpec

DEFAULT_SCHEDULES: Dict[str, ScheduleSpec] = {
    "hourly": ScheduleSpec(kind=FrequencyType.HOURLY, interval_hours=1),
    "daily": ScheduleSpec(kind=FrequencyType.DAILY),
    "mon": ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=1),
    "wed": ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=3),
    "fri": ScheduleSpec(kind=FrequencyType.WEEKLY, day_of_week=5),
}

DEFAULT_SEED_ALERTS: List[Dict[str, Any]] = [
    {"id": "def-1", "name": "Enlaces rotos", "prompt": "Scan for 404 links.", "email": "admin@ag.com", "schedule": "daily"},
    {"id": "def-2", "name": "Enlaces incorrectos", "prompt": "Verify outbound links.", "email": "seo@ag.com", "schedule": "daily"},
    {"id": "def-3", "name": "Textos - erratas", "prompt": "Review drafts for typos.", "email": "editor@ag.com", "schedule": "hourly"},
    {"id": "def-4", "name": "Informacion actualizada", "prompt": "Check About Us page.", "email": "content@ag.com", "schedule": "mon"},
    {"id": "def-5", "name": "Preguntas frecuentes", "prompt": "Generate FAQ from tickets.", "email": "support@ag.com", "schedule": "daily"},
    {"id": "def-6", "name": "CTAs", "prompt": "Analyze CTA performance.", "email": "mkt@ag.com", "schedule": "daily"},
    {"id": "def-7", "name": "Imagenes", "prompt": "Check alt tags.", "email": "dev@ag.com", "schedule": "fri"},
    {"id": "def-8", "name": "Diseño", "prompt": "Check mobile responsiveness.", "email": "design@ag.com", "schedule": "wed"},
]


def _parse_schedule(raw: Any) -> ScheduleSpec:
    if isinstance(raw, str):
        preset = DEFAULT_SCHEDULES.get(raw.strip().lower())
        if preset is not None:
            return preset
        return ScheduleSpec(kind=FrequencyType(raw.strip().lower()))
    if isinstance(raw, dict):
        return ScheduleSpec.from_dict(raw)
    raise ValueError(f"Unsupported schedule definition: {raw!r}")


def _to_draft(data: Dict[str, Any]) -> AlertDraft:
    name = data.get("name")
    prompt = data.get("prompt")
    if not name or not prompt:
        raise ValueError("Seed alert requires 'name' and 'prompt'")
    alert_id: Optional[str] = data.get("id")
    return AlertDraft(
        id=str(alert_id) if alert_id else None,
        name=str(name),
        prompt=str(prompt),
        email=data.get("email"),
        schedule=_parse_schedule(data.get("schedule", "daily")),
        is_ai_generated=bool(data.get("is_ai_generated", True)),
        is_active=bool(data.get("is_active", True)),
    )


def build_seed_alerts(config: Dict[str, Any]) -> List[AlertDraft]:
    """
    Build the alerts created at startup.

    An explicit ``seed_alerts`` list wins; otherwise the built-in defaults are
    used unless ``seed_defaults`` is false.
    """
    if not isinstance(config, dict):
        return []
    seed_raw = config.get("seed_alerts")
    if isinstance(seed_raw, list):
        return [_to_draft(entry) for entry in seed_raw if isinstance(entry, dict)]
    if config.get("seed_defaults", True):
        return [_to_draft(entry) for entry in DEFAULT_SEED_ALERTS]
    return []

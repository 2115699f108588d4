from __future__ import annotations

from pathlib import Path

import pytest

from app.lib.alerts import FrequencyType
from app.lib.alerts.registry import DEFAULT_SEED_ALERTS, build_seed_alerts
from app.lib.config import AppConfig, app_config


def test_empty_config_uses_defaults(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)

    config = AppConfig.from_dict(None).alertgenius

    assert config.dispatcher.tick_seconds == 1.0
    assert config.dispatcher.timezone == "UTC"
    assert config.generation.provider == "gemini"
    assert config.generation.api_key is None
    assert config.generation.timeout_seconds == 30.0
    assert config.settings.default_email == "admin@ag.com"
    assert config.settings.delivery_method == "simulated"
    assert config.logging.level == "INFO"
    assert config.alerts == {}


def test_api_key_falls_back_to_environment(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "from-env")

    config = AppConfig.from_dict({"alertgenius": {"generation": {"model": "gemini-test"}}})

    assert config.alertgenius.generation.api_key == "from-env"
    assert config.alertgenius.generation.model == "gemini-test"


def test_yaml_file_is_parsed(tmp_path: Path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        """
alertgenius:
  dispatcher:
    tick_seconds: 0.5
    timezone: Europe/Madrid
  generation:
    provider: none
  settings:
    default_email: ops@example.com
    delivery_method: smtp
    smtp_host: smtp.example.com
    smtp_port: 2525
  logging:
    level: debug
    console: false
  seed_defaults: false
""",
        encoding="utf-8",
    )

    config = app_config(str(config_file)).alertgenius

    assert config.dispatcher.tick_seconds == 0.5
    assert config.dispatcher.tzinfo.key == "Europe/Madrid"
    assert config.generation.provider == "none"
    assert config.settings.delivery_method == "smtp"
    assert config.settings.smtp_port == 2525
    assert config.logging.level == "DEBUG"
    assert config.logging.console is False
    assert config.alerts == {"seed_defaults": False}


@pytest.mark.parametrize(
    "section",
    [
        {"dispatcher": {"tick_seconds": 0}},
        {"dispatcher": {"timezone": "Mars/Olympus_Mons"}},
        {"generation": {"provider": "openai"}},
        {"generation": {"timeout_seconds": -1}},
        {"settings": {"delivery_method": "carrier-pigeon"}},
    ],
)
def test_invalid_values_are_rejected(section):
    with pytest.raises(ValueError):
        AppConfig.from_dict({"alertgenius": section})


def test_seed_defaults_used_when_no_list_given():
    drafts = build_seed_alerts({})

    assert [draft.id for draft in drafts] == [entry["id"] for entry in DEFAULT_SEED_ALERTS]
    by_id = {draft.id: draft for draft in drafts}
    assert by_id["def-3"].schedule.kind is FrequencyType.HOURLY
    assert by_id["def-3"].schedule.interval_hours == 1
    assert by_id["def-4"].schedule.day_of_week == 1
    assert by_id["def-7"].schedule.day_of_week == 5
    assert by_id["def-8"].schedule.day_of_week == 3


def test_seed_defaults_can_be_disabled():
    assert build_seed_alerts({"seed_defaults": False}) == []
    assert build_seed_alerts({"seed_alerts": []}) == []


def test_explicit_seed_alerts_accept_presets_kinds_and_mappings():
    drafts = build_seed_alerts(
        {
            "seed_alerts": [
                {"name": "Preset", "prompt": "p1", "schedule": "fri"},
                {"name": "Kind", "prompt": "p2", "schedule": "semi-annually"},
                {
                    "id": "custom",
                    "name": "Mapping",
                    "prompt": "p3",
                    "is_ai_generated": False,
                    "schedule": {"type": "annually", "month": 11, "dayOfMonth": 24},
                },
            ]
        }
    )

    preset, kind, mapping = drafts
    assert preset.id is None
    assert preset.schedule.kind is FrequencyType.WEEKLY
    assert preset.schedule.day_of_week == 5
    assert kind.schedule.kind is FrequencyType.SEMI_ANNUALLY
    assert mapping.id == "custom"
    assert mapping.is_ai_generated is False
    assert mapping.schedule.month == 11
    assert mapping.schedule.day_of_month == 24


def test_seed_alert_requires_name_and_prompt():
    with pytest.raises(ValueError):
        build_seed_alerts({"seed_alerts": [{"name": "No prompt"}]})


def test_sample_config_ships_the_default_alerts():
    sample = Path(__file__).resolve().parents[1] / "app" / "config.yaml"

    config = app_config(str(sample)).alertgenius
    drafts = build_seed_alerts(config.alerts)
    defaults = build_seed_alerts({})

    assert [(d.id, d.name, d.prompt, d.email) for d in drafts] == [
        (entry["id"], entry["name"], entry["prompt"], entry["email"]) for entry in DEFAULT_SEED_ALERTS
    ]
    assert [d.schedule for d in drafts] == [d.schedule for d in defaults]

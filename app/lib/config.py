from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from app.lib.alerts.models import AppSettings
from app.lib.clients.gemini import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL


@dataclass
class DispatcherConfig:
    tick_seconds: float = 1.0
    timezone: str = "UTC"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DispatcherConfig":
        tick_seconds = float(data.get("tick_seconds", 1.0))
        if tick_seconds <= 0:
            raise ValueError("Dispatcher 'tick_seconds' must be positive")
        timezone_name = str(data.get("timezone") or "UTC")
        try:
            ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown dispatcher timezone: {timezone_name}") from exc
        return cls(tick_seconds=tick_seconds, timezone=timezone_name)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass
class GenerationConfig:
    provider: str = "gemini"
    api_key: Optional[str] = None
    model: str = DEFAULT_GEMINI_MODEL
    base_url: str = DEFAULT_GEMINI_BASE_URL
    timeout_seconds: float = 30.0
    attempts: int = 3

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationConfig":
        provider = (data.get("provider") or "gemini").strip().lower()
        if provider not in {"gemini", "none"}:
            raise ValueError(f"Unsupported generation provider: {provider}")

        timeout_seconds = float(data.get("timeout_seconds", 30.0))
        if timeout_seconds <= 0:
            raise ValueError("Generation 'timeout_seconds' must be positive")

        api_key = data.get("api_key") or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        return cls(
            provider=provider,
            api_key=str(api_key) if api_key else None,
            model=str(data.get("model") or DEFAULT_GEMINI_MODEL),
            base_url=str(data.get("base_url") or DEFAULT_GEMINI_BASE_URL),
            timeout_seconds=timeout_seconds,
            attempts=max(1, int(data.get("attempts", 3))),
        )


@dataclass
class LoggingConfig:
    level: str = "INFO"
    console: bool = True
    base_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level") or "INFO").upper(),
            console=bool(data.get("console", True)),
            base_dir=str(data["base_dir"]) if data.get("base_dir") else None,
        )


@dataclass
class AlertGeniusConfig:
    dispatcher: DispatcherConfig = field(default_factory=DispatcherConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    settings: AppSettings = field(default_factory=AppSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    alerts: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertGeniusConfig":
        alerts: Dict[str, Any] = {}
        if "seed_alerts" in data:
            alerts["seed_alerts"] = data.get("seed_alerts") or []
        if "seed_defaults" in data:
            alerts["seed_defaults"] = bool(data["seed_defaults"])
        return cls(
            dispatcher=DispatcherConfig.from_dict(data.get("dispatcher") or {}),
            generation=GenerationConfig.from_dict(data.get("generation") or {}),
            settings=AppSettings.from_dict(data.get("settings") or {}),
            logging=LoggingConfig.from_dict(data.get("logging") or {}),
            alerts=alerts,
        )


@dataclass
class AppConfig:
    alertgenius: AlertGeniusConfig

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AppConfig":
        data = data or {}
        return cls(alertgenius=AlertGeniusConfig.from_dict(data.get("alertgenius") or {}))


def app_config(file_path: str) -> AppConfig:
    with open(file_path, "r", encoding="utf-8") as file:
        config_dict = yaml.safe_load(file)
    return AppConfig.from_dict(config_dict)


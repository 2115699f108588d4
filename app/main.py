from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path
from typing import Optional

from app.lib.alerts import AlertDispatcher, AlertEngine, LogStatus
from app.lib.alerts.registry import build_seed_alerts
from app.lib.clients import build_content_generator
from app.lib.config import AppConfig, app_config
from app.lib.logging_utils import setup_debug_logging, setup_logging


PROJECT_ROOT = Path(__file__).resolve().parent
_config_override = os.getenv("ALERTGENIUS_CONFIG")
CONFIG_PATH = Path(_config_override) if _config_override else PROJECT_ROOT / "config.yaml"
DEBUG_LOGGER = setup_debug_logging(PROJECT_ROOT)


def load_configuration() -> AppConfig:
    if not CONFIG_PATH.exists():
        return AppConfig.from_dict({})
    return app_config(str(CONFIG_PATH))


async def run_dispatch_loop(
    max_runtime: Optional[float] = None,
    tick_seconds: Optional[float] = None,
) -> AlertEngine:
    """
    Run the alert dispatcher without the HTTP layer.

    When max_runtime is provided, the loop stops after the given number
    of seconds and in-flight passes are allowed to finish.
    """
    config = load_configuration().alertgenius
    log_base = Path(config.logging.base_dir) if config.logging.base_dir else PROJECT_ROOT
    setup_logging(log_base, level=config.logging.level, console=config.logging.console)

    generator = build_content_generator(config.generation)
    engine = AlertEngine(
        generator,
        settings=config.settings,
        calendar_tz=config.dispatcher.tzinfo,
        generation_timeout=config.generation.timeout_seconds,
    )
    engine.create_alerts(build_seed_alerts(config.alerts))

    dispatcher = AlertDispatcher(
        engine,
        tick_seconds=tick_seconds or config.dispatcher.tick_seconds,
    )
    DEBUG_LOGGER.info(
        "dispatch_loop.start",
        extra={"max_runtime": max_runtime, "alerts": len(engine.list_alerts())},
    )
    dispatcher.start()
    try:
        if max_runtime is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(max_runtime)
    finally:
        await dispatcher.stop()
        await generator.aclose()
        DEBUG_LOGGER.info("dispatch_loop.stop", extra={"logs": len(engine.list_logs())})
    return engine


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AlertGenius headless dispatcher.")
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Optional maximum runtime in seconds before exiting the loop.",
    )
    parser.add_argument(
        "--tick",
        type=float,
        default=None,
        help="Seconds between dispatcher ticks (defaults to the configured value).",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    engine = asyncio.run(run_dispatch_loop(max_runtime=args.duration, tick_seconds=args.tick))
    for entry in engine.list_logs():
        marker = "ok" if entry.status is LogStatus.SUCCESS else entry.status.value
        print(f"[{entry.timestamp.isoformat()}] {entry.alert_name} -> {entry.email_target} ({marker})")

"""Process-wide loguru setup for the engine and the CLI."""

from __future__ import annotations

import sys
from typing import Any, Literal

import loguru
from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

from palaver.config import get_settings

LogProfile = Literal["default", "console", "json"]

_DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{line} | {extra[session]} | {message}"
_active_profile: LogProfile | None = None


def _session_default(record: loguru.Record) -> None:
    # records logged outside DialogApp.execute have no session bound
    record["extra"].setdefault("session", "-")


def _sink_options(profile: LogProfile) -> dict[str, Any]:
    if profile == "console":
        handler = RichHandler(
            console=Console(stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )
        return {"sink": handler, "format": "[{extra[session]}] {message}"}
    if profile == "json":
        return {"sink": sys.stderr, "serialize": True}
    return {"sink": sys.stderr, "format": _DEFAULT_FORMAT}


def configure_logging(*, profile: LogProfile = "default", level: str | None = None) -> None:
    """Replace loguru's sinks with one sink for `profile`.

    Calling again with the active profile is a no-op. The level defaults to
    `Settings.log_level` (`PALAVER_LOG_LEVEL`).
    """

    global _active_profile
    if profile == _active_profile:
        return

    logger.remove()
    logger.configure(patcher=_session_default)
    logger.add(
        level=(level or get_settings().log_level).upper(),
        backtrace=False,
        diagnose=False,
        **_sink_options(profile),
    )
    _active_profile = profile

"""Hydrate the session model with stored user data when a session starts."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from loguru import logger

from palaver.errors import ConfigurationError
from palaver.event import NormalizedEvent
from palaver.hookspecs import hookimpl
from palaver.storage import SessionStorage

if TYPE_CHECKING:
    from palaver.app import DialogApp


@dataclass(frozen=True)
class AutoLoadConfig:
    """Settings for one auto-load registration."""

    adapter: SessionStorage
    attribute: str = "user"
    save_on_reply: bool = False

    def __post_init__(self) -> None:
        if self.adapter is None:
            raise ConfigurationError("Missing adapter")
        if not callable(getattr(self.adapter, "get", None)):
            raise ConfigurationError("No get method to fetch data from")
        if self.save_on_reply and not callable(getattr(self.adapter, "save", None)):
            raise ConfigurationError("No save method to store data in")
        if not self.attribute.isidentifier():
            raise ConfigurationError(f"Invalid model attribute: {self.attribute!r}")


class AutoLoad:
    """Plugin that loads `model.<attribute>` from the adapter on session start."""

    def __init__(self, config: AutoLoadConfig) -> None:
        self._config = config

    @hookimpl
    async def on_session_started(self, event: NormalizedEvent) -> None:
        if event.model is None:
            return
        try:
            data = await _resolve(self._config.adapter.get(event.user_id))
        except Exception as exc:
            logger.warning("autoload.get_failed user={} error={}", event.user_id, exc)
            raise
        logger.debug("autoload.fetched user={} attribute={}", event.user_id, self._config.attribute)
        setattr(event.model, self._config.attribute, dict(data) if isinstance(data, Mapping) else data)

    @hookimpl
    async def on_before_reply_sent(self, event: NormalizedEvent) -> None:
        if not self._config.save_on_reply or event.model is None:
            return
        data = getattr(event.model, self._config.attribute, None)
        if data is None:
            return
        await _resolve(self._config.adapter.save(event.user_id, data))
        logger.debug("autoload.saved user={} attribute={}", event.user_id, self._config.attribute)


def auto_load(app: DialogApp, config: AutoLoadConfig | None) -> AutoLoad:
    """Register the auto-load plugin on `app` with an explicit configuration."""

    if config is None:
        raise ConfigurationError("Missing config object")
    plugin = AutoLoad(config)
    app.register_plugin(plugin)
    return plugin


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value

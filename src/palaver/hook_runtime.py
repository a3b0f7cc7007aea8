"""Ordered hook execution over pluggy."""

from __future__ import annotations

import inspect
import itertools
from collections.abc import Callable
from typing import Any

import pluggy
from loguru import logger

from palaver.hookspecs import hookimpl


class HookRuntime:
    """Run hook implementations strictly in registration order, awaiting each one.

    Errors raised by implementations propagate to the caller, except for
    `on_error` observers whose failures are logged and skipped.
    """

    def __init__(self, plugin_manager: pluggy.PluginManager) -> None:
        self._plugin_manager = plugin_manager
        self._counter = itertools.count(1)

    def register_callback(self, hook_name: str, callback: Callable[..., Any]) -> str:
        """Register a plain (a)sync callable as an implementation of `hook_name`."""

        if hook_name not in _ADAPTERS:
            raise ValueError(f"unknown hook: {hook_name}")
        if not callable(callback):
            raise TypeError(f"{hook_name} callback must be callable")
        plugin_name = f"{hook_name}:{getattr(callback, '__name__', 'callback')}:{next(self._counter)}"
        self._plugin_manager.register(_callback_plugin(hook_name, callback), name=plugin_name)
        return plugin_name

    def register_plugin(self, plugin: object, name: str | None = None) -> str:
        """Register an object exposing `@hookimpl` methods."""

        plugin_name = name or f"{type(plugin).__name__}:{next(self._counter)}"
        self._plugin_manager.register(plugin, name=plugin_name)
        return plugin_name

    def implementations(self, hook_name: str) -> list[Any]:
        hook = getattr(self._plugin_manager.hook, hook_name, None)
        if hook is None or not hasattr(hook, "get_hookimpls"):
            return []
        # pluggy stores plain implementations in registration order and calls them LIFO
        impls = [impl for impl in hook.get_hookimpls() if not (impl.hookwrapper or impl.wrapper)]
        return sorted(impls, key=_impl_priority)

    async def invoke(self, impl: Any, **kwargs: Any) -> Any:
        value = impl.function(**self._kwargs_for_impl(impl, kwargs))
        if inspect.isawaitable(value):
            value = await value
        return value

    async def call_first(self, hook_name: str, **kwargs: Any) -> Any:
        """Run implementations in order and return the first non-None value."""

        for impl in self.implementations(hook_name):
            value = await self.invoke(impl, **kwargs)
            if value is not None:
                return value
        return None

    async def call_many(self, hook_name: str, **kwargs: Any) -> list[Any]:
        """Run all implementations and collect their return values."""

        results: list[Any] = []
        for impl in self.implementations(hook_name):
            results.append(await self.invoke(impl, **kwargs))
        return results

    async def notify_error(self, **kwargs: Any) -> Any:
        """Call on_error hooks until one returns a value, skipping failing observers."""

        for impl in self.implementations("on_error"):
            try:
                value = await self.invoke(impl, **kwargs)
            except Exception:
                logger.opt(exception=True).warning("hook.on_error_failed plugin={}", impl.plugin_name or "<unknown>")
                continue
            if value is not None:
                return value
        return None

    def hook_report(self) -> dict[str, list[str]]:
        """Build a hook->plugins mapping for diagnostics."""

        report: dict[str, list[str]] = {}
        for hook_name, hook_caller in sorted(self._plugin_manager.hook.__dict__.items()):
            if hook_name.startswith("_") or not hasattr(hook_caller, "get_hookimpls"):
                continue
            plugin_names = [impl.plugin_name for impl in self.implementations(hook_name)]
            if plugin_names:
                report[hook_name] = plugin_names
        return report

    @staticmethod
    def _kwargs_for_impl(impl: Any, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {name: kwargs[name] for name in impl.argnames if name in kwargs}


class _CallbackAdapter:
    """Wrap a plain callable as a pluggy plugin for one hook.

    Subclasses declare the hook method with the hookspec's positional parameters so
    pluggy reads real argument names from the function code.
    """

    def __init__(self, callback: Callable[..., Any], available: int) -> None:
        self._callback = callback
        self._arity = accepted_arity(callback, available)

    def forward(self, *args: Any) -> Any:
        return self._callback(*args[: self._arity])


class _RequestStarted(_CallbackAdapter):
    @hookimpl
    def on_request_started(self, event, reply):
        return self.forward(event, reply)


class _SessionStarted(_CallbackAdapter):
    @hookimpl
    def on_session_started(self, event, reply):
        return self.forward(event, reply)


class _BeforeStateChanged(_CallbackAdapter):
    @hookimpl
    def on_before_state_changed(self, event, reply, state):
        return self.forward(event, reply, state)


class _AfterStateChanged(_CallbackAdapter):
    @hookimpl
    def on_after_state_changed(self, event, reply, transition):
        return self.forward(event, reply, transition)


class _BeforeReplySent(_CallbackAdapter):
    @hookimpl
    def on_before_reply_sent(self, event, reply, transition):
        return self.forward(event, reply, transition)


class _UnhandledState(_CallbackAdapter):
    @hookimpl
    def on_unhandled_state(self, event, state):
        return self.forward(event, state)


class _Error(_CallbackAdapter):
    @hookimpl
    def on_error(self, event, error, reply):
        return self.forward(event, error, reply)


_ADAPTERS: dict[str, type[_CallbackAdapter]] = {
    "on_request_started": _RequestStarted,
    "on_session_started": _SessionStarted,
    "on_before_state_changed": _BeforeStateChanged,
    "on_after_state_changed": _AfterStateChanged,
    "on_before_reply_sent": _BeforeReplySent,
    "on_unhandled_state": _UnhandledState,
    "on_error": _Error,
}


def _callback_plugin(hook_name: str, callback: Callable[..., Any]) -> _CallbackAdapter:
    adapter = _ADAPTERS[hook_name]
    parameters = inspect.signature(getattr(adapter, hook_name)).parameters
    return adapter(callback, len(parameters) - 1)


def _impl_priority(impl: Any) -> int:
    if impl.tryfirst:
        return 0
    if impl.trylast:
        return 2
    return 1


def accepted_arity(callback: Callable[..., Any], available: int) -> int:
    """Number of leading hook arguments the callback accepts."""

    try:
        parameters = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        return available
    count = 0
    for param in parameters:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return available
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return min(count, available)

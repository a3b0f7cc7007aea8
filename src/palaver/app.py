"""Dialog application: registration surface and turn execution."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import pluggy
from loguru import logger

from palaver.config import Settings
from palaver.directives import apply_directives, transition_directives
from palaver.errors import UnknownStateError
from palaver.event import NormalizedEvent
from palaver.hook_runtime import HookRuntime
from palaver.hookspecs import PALAVER_HOOK_NAMESPACE, PalaverHookSpecs
from palaver.model import Model
from palaver.renderer import Renderer, Variable, ViewRenderer
from palaver.reply import Reply
from palaver.state_machine import FinalTransition, StateMachine
from palaver.transition import Transition, classify, normalize
from palaver.types import Handler, IntentMap

type Callback = Callable[..., Any]


class DialogApp:
    """State-machine dialog engine. Everything channel-specific lives outside."""

    def __init__(
        self,
        *,
        views: Mapping[str, Mapping[str, Any]] | None = None,
        variables: Mapping[str, Variable] | None = None,
        renderer: Renderer | None = None,
        settings: Settings | None = None,
        model_class: type[Model] = Model,
    ) -> None:
        self.settings = settings or Settings()
        self.renderer: Renderer = renderer or ViewRenderer(
            views or {},
            variables,
            default_locale=self.settings.default_locale,
        )
        self.model_class = model_class
        self._plugin_manager = pluggy.PluginManager(PALAVER_HOOK_NAMESPACE)
        self._plugin_manager.add_hookspecs(PalaverHookSpecs)
        self._hooks = HookRuntime(self._plugin_manager)
        self.state_machine = StateMachine(
            self._hooks,
            entry_state=self.settings.entry_state,
            terminal_state=self.settings.terminal_state,
            max_transitions=self.settings.max_transitions,
        )

    def register_state(
        self,
        name: str,
        handler: Handler | IntentMap,
        intents: list[str] | tuple[str, ...] | str | None = None,
    ) -> None:
        """Register a state handler or an intent map."""

        self.state_machine.register(name, handler, intents)

    def on_state(
        self,
        name: str,
        intents: list[str] | tuple[str, ...] | str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of `register_state`."""

        def decorator(handler: Handler) -> Handler:
            self.register_state(name, handler, intents)
            return handler

        return decorator

    def on_intent(self, intent_name: str, handler: Handler) -> None:
        """Register a state named after the intent and route to it from the entry state."""

        self.register_state(intent_name, handler)
        entry = self.state_machine.states.get(self.settings.entry_state)
        if entry is None or intent_name not in entry.intents:
            self.register_state(self.settings.entry_state, {intent_name: intent_name})

    def on_request_started(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_request_started", callback)
        return callback

    def on_session_started(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_session_started", callback)
        return callback

    def on_before_state_changed(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_before_state_changed", callback)
        return callback

    def on_after_state_changed(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_after_state_changed", callback)
        return callback

    def on_before_reply_sent(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_before_reply_sent", callback)
        return callback

    def on_unhandled_state(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_unhandled_state", callback)
        return callback

    def on_error(self, callback: Callback) -> Callback:
        self._hooks.register_callback("on_error", callback)
        return callback

    def register_plugin(self, plugin: object, name: str | None = None) -> str:
        """Register an object exposing `@hookimpl` methods."""

        return self._hooks.register_plugin(plugin, name)

    def hook_report(self) -> dict[str, list[str]]:
        """Return hook implementation summary for diagnostics."""

        return self._hooks.hook_report()

    async def execute(self, event: NormalizedEvent, reply: Reply) -> Reply:
        """Run one turn and return the reply for the channel adapter to serialize."""

        with logger.contextualize(session=event.session_key):
            logger.info("turn.start intent={} new_session={}", event.intent_name, event.is_new_session)
            model: Model | None = None
            try:
                model = self.model_class.deserialize(event.session_attributes)
                event.model = model
                event.renderer = self.renderer
                final = await self._run(event, model, reply)
                logger.info("turn.done state={} path={}", final.state, "->".join(final.path))
            except Exception as error:
                model = await self._recover(event, reply, model, error)
            reply.set_session(model.serialize())
            event.session_attributes = reply.session_attributes
            return reply

    async def _run(self, event: NormalizedEvent, model: Model, reply: Reply) -> FinalTransition:
        await self._hooks.call_many("on_request_started", event=event, reply=reply)
        if event.is_new_session:
            await self._hooks.call_many("on_session_started", event=event, reply=reply)
        final = await self.state_machine.run_transition(event, model, reply)
        await self._hooks.call_many("on_before_reply_sent", event=event, reply=reply, transition=final.transition)
        await self._write_transition(final.transition, reply, event)
        return final

    async def _write_transition(self, transition: Transition, reply: Reply, event: NormalizedEvent) -> None:
        await apply_directives(transition_directives(transition), reply, event, transition)
        if transition.should_terminate:
            reply.terminate()

    async def _recover(self, event: NormalizedEvent, reply: Reply, model: Model | None, error: Exception) -> Model:
        logger.opt(exception=error).error("turn.failed error={}", type(error).__name__)
        if model is None:
            model = self.model_class()
            event.model = model
            event.renderer = self.renderer
        reply.clear()

        fallback = await self._hooks.notify_error(event=event, error=error, reply=reply)
        if fallback is not None:
            try:
                transition = normalize(classify(fallback), model.state or self.settings.entry_state)
                target = transition.to
                if target is not None and target != self.settings.terminal_state:
                    if not self.state_machine.is_registered(target):
                        raise UnknownStateError(target)
                if target is not None:
                    model.state = target
                await self._write_transition(transition, reply, event)
                return model
            except Exception:
                logger.opt(exception=True).warning("turn.error_reply_failed")
                reply.clear()

        reply.add_statement(self.settings.error_statement, is_plain=True)
        reply.terminate()
        model.state = self.settings.entry_state
        return model

"""State graph registry and the transition engine."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from palaver.errors import ConfigurationError, InfiniteLoopError, UnhandledIntentError, UnknownStateError
from palaver.event import NormalizedEvent
from palaver.hook_runtime import HookRuntime, accepted_arity
from palaver.model import Model
from palaver.reply import Reply
from palaver.transition import HandlerOutcome, Transition, classify, normalize
from palaver.types import Handler, IntentMap


@dataclass
class State:
    """One node of the state graph.

    `intents` maps intent names to a handler or to a target state name;
    `handler` serves every intent the map does not mention.
    """

    name: str
    handler: Handler | None = None
    intents: dict[str, Handler | str] = field(default_factory=dict)

    def resolve(self, intent_name: str) -> Handler | str | None:
        return self.intents.get(intent_name, self.handler)


@dataclass(frozen=True)
class FinalTransition:
    """Settled outcome of one turn through the state machine."""

    transition: Transition
    state: str
    path: list[str]


class StateMachine:
    """Resolve the current state, run its handler and follow transitions."""

    def __init__(
        self,
        hooks: HookRuntime,
        *,
        entry_state: str = "entry",
        terminal_state: str = "die",
        max_transitions: int = 25,
    ) -> None:
        self._hooks = hooks
        self._states: dict[str, State] = {}
        self.entry_state = entry_state
        self.terminal_state = terminal_state
        self.max_transitions = max_transitions

    @property
    def states(self) -> dict[str, State]:
        return dict(self._states)

    def is_registered(self, name: str) -> bool:
        return name in self._states

    def register(
        self,
        name: str,
        handler: Handler | IntentMap,
        intents: list[str] | tuple[str, ...] | str | None = None,
    ) -> State:
        """Register a handler or an intent map under `name`.

        Registering the same name again extends the state; serving the same
        intent twice is a configuration error.
        """

        if name == self.terminal_state:
            raise ConfigurationError(f"'{name}' is reserved for the terminal state")
        state = self._states.setdefault(name, State(name=name))

        if isinstance(handler, Mapping):
            if intents is not None:
                raise ConfigurationError(f"{name}: intent maps cannot be restricted to intents")
            for intent_name, target in handler.items():
                self._add_intent(state, str(intent_name), target)
            return state

        if not callable(handler):
            raise ConfigurationError(f"{name}: handler must be callable or an intent map")
        if intents is None:
            if state.handler is not None:
                raise ConfigurationError(f"{name}: state already has a catch-all handler")
            state.handler = handler
            return state
        for intent_name in [intents] if isinstance(intents, str) else intents:
            self._add_intent(state, intent_name, handler)
        return state

    def initial_state(self, event: NormalizedEvent, model: Model) -> str:
        if event.is_new_session or not model.state or model.state == self.terminal_state:
            return self.entry_state
        return model.state

    async def run_transition(self, event: NormalizedEvent, model: Model, reply: Reply) -> FinalTransition:
        """Drive one turn from the model's state until the flow settles."""

        current = self.initial_state(event, model)
        self._require(current)
        model.state = current
        path = [current]

        while True:
            current, transition = await self._run_state(current, event, model, reply)
            target = transition.to
            if target is not None and target != self.terminal_state:
                self._require(target)
            if target is not None:
                model.state = target
            logger.debug(
                "state.transition from={} to={} terminate={} flow={}",
                current,
                target,
                transition.should_terminate,
                transition.flow,
            )

            if (
                target is None
                or target == current
                or target == self.terminal_state
                or transition.should_terminate
                or transition.yields
            ):
                return FinalTransition(transition=transition, state=model.state or current, path=path)

            if len(path) > self.max_transitions:
                raise InfiniteLoopError([*path, target], self.max_transitions)
            path.append(target)
            current = target

    async def _run_state(
        self,
        current: str,
        event: NormalizedEvent,
        model: Model,
        reply: Reply,
    ) -> tuple[str, Transition]:
        outcome: HandlerOutcome | None = None
        for impl in self._hooks.implementations("on_before_state_changed"):
            value = await self._hooks.invoke(impl, event=event, reply=reply, state=current)
            if value is None:
                continue
            if isinstance(value, str):
                self._require(value)
                logger.debug("state.redirect from={} to={} plugin={}", current, value, impl.plugin_name)
                current = value
                model.state = value
                continue
            outcome = classify(value)
            logger.debug("state.short_circuit state={} plugin={}", current, impl.plugin_name)
            break

        if outcome is None:
            outcome = await self._invoke_handler(current, event, model)
        transition = normalize(outcome, current)

        for impl in self._hooks.implementations("on_after_state_changed"):
            value = await self._hooks.invoke(impl, event=event, reply=reply, transition=transition)
            if value is not None:
                transition = normalize(classify(value), current)
        return current, transition

    async def _invoke_handler(self, current: str, event: NormalizedEvent, model: Model) -> HandlerOutcome:
        handler = self._states[current].resolve(event.intent_name)
        if handler is None:
            fallback = await self._hooks.call_first("on_unhandled_state", event=event, state=current)
            if fallback is None:
                raise UnhandledIntentError(current, event.intent_name)
            logger.info("state.unhandled_recovered state={} intent={}", current, event.intent_name)
            return classify(fallback)
        if isinstance(handler, str):
            return Transition(to=handler)

        args: tuple[Any, ...] = (event, model)
        value = handler(*args[: accepted_arity(handler, len(args))])
        if inspect.isawaitable(value):
            value = await value
        return classify(value)

    def _add_intent(self, state: State, intent_name: str, target: Handler | str) -> None:
        if intent_name in state.intents:
            raise ConfigurationError(f"{state.name}: intent '{intent_name}' is already handled")
        if not isinstance(target, str) and not callable(target):
            raise ConfigurationError(f"{state.name}: '{intent_name}' must map to a state name or a handler")
        state.intents[intent_name] = target

    def _require(self, name: str) -> None:
        if name not in self._states:
            raise UnknownStateError(name)

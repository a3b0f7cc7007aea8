"""Transition results and normalization of state handler return values."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from palaver.directives import Directive

Flow = Literal["continue", "yield", "terminate"]
FLOWS: frozenset[str] = frozenset({"continue", "yield", "terminate"})

type ReplyReference = str | list[str]

SPEECH_KEYS = ("say", "ask", "tell", "reprompt")


@dataclass
class Transition:
    """Normalized output of one state handler invocation."""

    to: str | None = None
    reply: ReplyReference | None = None
    directives: list[Directive] = field(default_factory=list)
    should_terminate: bool = False
    flow: Flow | None = None

    def __post_init__(self) -> None:
        if self.flow is not None and self.flow not in FLOWS:
            raise ValueError(f"unknown flow: {self.flow}")
        if self.flow == "terminate":
            self.should_terminate = True
        self.directives = list(self.directives)

    @property
    def yields(self) -> bool:
        """True when the transition moves to `to` but waits for the next turn."""

        return self.flow == "yield"

    @property
    def reply_paths(self) -> list[str]:
        if self.reply is None:
            return []
        if isinstance(self.reply, str):
            return [self.reply]
        return list(self.reply)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> Transition:
        """Build a transition from a plain dict returned by a handler.

        `say`, `ask`, `tell` and `reprompt` take a view path or a list of paths
        and become the matching directives, ahead of any explicit `directives`.
        `tell` also terminates.
        """

        from palaver.directives import Reprompt, Say, Tell

        unknown = set(payload) - {"to", "reply", "directives", "should_terminate", "flow", *SPEECH_KEYS}
        if unknown:
            raise TypeError(f"unexpected transition keys: {', '.join(sorted(unknown))}")

        speech_types = {"say": Say, "ask": Say, "tell": Tell, "reprompt": Reprompt}
        directives: list[Directive] = []
        for key in SPEECH_KEYS:
            paths = payload.get(key)
            if paths is None:
                continue
            if isinstance(paths, str):
                paths = [paths]
            if not isinstance(paths, list) or not all(isinstance(path, str) for path in paths):
                raise TypeError(f"transition key '{key}' expects a view path or a list of view paths")
            directives.extend(speech_types[key](path) for path in paths)
        directives.extend(payload.get("directives") or [])

        return cls(
            to=payload.get("to"),
            reply=payload.get("reply"),
            directives=directives,
            should_terminate=bool(payload.get("should_terminate", False)) or "tell" in payload,
            flow=payload.get("flow"),
        )


@dataclass(frozen=True)
class ContentOnly:
    """A handler result carrying only a view path reference."""

    reply: ReplyReference


type HandlerOutcome = ContentOnly | Transition


def classify(value: Any) -> HandlerOutcome:
    """Tag a raw handler return value as content-only or a full transition."""

    if isinstance(value, Transition | ContentOnly):
        return value
    if value is None:
        return Transition()
    if isinstance(value, str):
        return ContentOnly(value)
    if isinstance(value, Mapping):
        return Transition.from_mapping(value)
    if isinstance(value, Sequence) and all(isinstance(item, str) for item in value):
        return ContentOnly(list(value))
    raise TypeError(f"state handler returned unsupported value: {value!r}")


def normalize(outcome: HandlerOutcome, current_state: str) -> Transition:
    """Turn a classified handler outcome into a complete transition.

    Content-only outcomes terminate the conversation. A transition without a
    target stays in `current_state` unless it terminates. The result is always
    a new object, so handlers may return shared Transition constants.
    """

    if isinstance(outcome, ContentOnly):
        return Transition(reply=outcome.reply, should_terminate=True)
    target = outcome.to
    if target is None and not outcome.should_terminate:
        target = current_state
    return replace(outcome, to=target, directives=list(outcome.directives))

"""Pluggy hook namespace and middleware hook specifications."""

from __future__ import annotations

from typing import Any

import pluggy

from palaver.event import NormalizedEvent
from palaver.reply import Reply
from palaver.transition import Transition

PALAVER_HOOK_NAMESPACE = "palaver"
hookspec = pluggy.HookspecMarker(PALAVER_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(PALAVER_HOOK_NAMESPACE)


class PalaverHookSpecs:
    """Middleware contract. Implementations run in registration order."""

    @hookspec
    def on_request_started(self, event: NormalizedEvent, reply: Reply) -> None:
        """Run at the start of every turn."""

    @hookspec
    def on_session_started(self, event: NormalizedEvent, reply: Reply) -> None:
        """Run once when the event opens a new session."""

    @hookspec
    def on_before_state_changed(self, event: NormalizedEvent, reply: Reply, state: str) -> Any:
        """Redirect by returning a state name or short-circuit by returning a transition."""

    @hookspec
    def on_after_state_changed(self, event: NormalizedEvent, reply: Reply, transition: Transition) -> Any:
        """Inspect or replace the normalized transition of one handler run."""

    @hookspec
    def on_before_reply_sent(self, event: NormalizedEvent, reply: Reply, transition: Transition) -> None:
        """Last look at the reply before directives are applied."""

    @hookspec(firstresult=True)
    def on_unhandled_state(self, event: NormalizedEvent, state: str) -> Any:
        """Produce a fallback when the state does not handle the intent."""

    @hookspec(firstresult=True)
    def on_error(self, event: NormalizedEvent, error: Exception, reply: Reply) -> Any:
        """Produce a fallback transition for a failed turn."""

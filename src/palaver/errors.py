"""Application-level exception types for palaver."""

from __future__ import annotations


class PalaverError(Exception):
    """Base exception for palaver."""


class ConfigurationError(PalaverError):
    """Raised when an app or plugin is registered with invalid configuration."""


class StateMachineError(PalaverError):
    """Base exception for state resolution and transition failures."""


class UnknownStateError(StateMachineError):
    """Raised when a state or transition target is not registered."""

    def __init__(self, state: str) -> None:
        super().__init__(f"Unknown state: {state}")
        self.state = state


class UnhandledIntentError(StateMachineError):
    """Raised when the current state has no handler for the incoming intent."""

    def __init__(self, state: str, intent_name: str) -> None:
        super().__init__(f"State '{state}' does not handle intent '{intent_name}'")
        self.state = state
        self.intent_name = intent_name


class InfiniteLoopError(StateMachineError):
    """Raised when one turn exceeds the configured number of state hops."""

    def __init__(self, path: list[str], limit: int) -> None:
        super().__init__(f"Exceeded {limit} transitions in one turn: {' -> '.join(path)}")
        self.path = path
        self.limit = limit


class DirectiveError(PalaverError):
    """Raised when a directive cannot be written to the reply."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


class RenderError(PalaverError):
    """Raised when a view path or one of its variables cannot be resolved."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot render '{path}': {reason}")
        self.path = path
        self.reason = reason

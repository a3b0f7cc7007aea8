"""Channel-agnostic view of one incoming turn."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from palaver.model import Model
    from palaver.renderer import Renderer

UNHANDLED_INTENT = "UnhandledIntent"


@dataclass
class NormalizedEvent:
    """One turn of user input as produced by a channel adapter.

    `model` and `renderer` are attached by the app when the turn starts so that
    handlers, hooks and directives can reach them through the event.
    """

    intent_name: str
    params: Mapping[str, Any] = field(default_factory=dict)
    session_attributes: dict[str, Any] = field(default_factory=dict)
    raw_payload: Any = None
    is_new_session: bool = False
    user_id: str = ""
    session_id: str | None = None
    platform: str = "core"
    locale: str | None = None
    capabilities: frozenset[str] | None = None
    model: Model | None = field(default=None, repr=False, compare=False)
    renderer: Renderer | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        name = str(self.intent_name or "").strip()
        self.intent_name = name or UNHANDLED_INTENT
        self.params = dict(self.params)
        self.session_attributes = dict(self.session_attributes or {})

    @property
    def session_key(self) -> str:
        """Identifier used to tag log records of this turn."""

        return self.session_id or self.user_id or "-"

    def has_capability(self, name: str) -> bool:
        """Return whether the surface supports `name`; unknown capabilities count as supported."""

        if self.capabilities is None:
            return True
        return name in self.capabilities

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> NormalizedEvent:
        """Build an event from a loosely-shaped mapping, ignoring unknown keys."""

        known = {
            "intent_name",
            "params",
            "session_attributes",
            "raw_payload",
            "is_new_session",
            "user_id",
            "session_id",
            "platform",
            "locale",
        }
        values = {key: value for key, value in payload.items() if key in known}
        capabilities = payload.get("capabilities")
        if capabilities is not None:
            values["capabilities"] = frozenset(str(item) for item in capabilities)
        values.setdefault("intent_name", payload.get("intent", ""))
        return cls(**values)

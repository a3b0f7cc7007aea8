"""Plain-text reply used by the CLI and local runs."""

from __future__ import annotations

from typing import Any

from palaver.directives import ViewDirective, require_reply
from palaver.errors import DirectiveError
from palaver.event import NormalizedEvent
from palaver.reply import Reply
from palaver.transition import Transition


class ConsoleReply(Reply):
    platform = "console"

    def __init__(self) -> None:
        super().__init__()
        self._sections: list[dict[str, Any]] = []

    def add_section(self, section_type: str, payload: Any) -> None:
        self._sections.append({"type": section_type, "payload": payload})

    @property
    def text(self) -> str:
        return self._statements.as_text()

    def directive_types(self) -> list[str]:
        return [section["type"] for section in self._sections]

    def _clear_directives(self) -> None:
        self._sections = []

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self._statements.as_text(),
            "reprompt": self._reprompts.as_text(),
            "terminate": self.has_terminated,
            "session": self.session_attributes,
            "sections": [dict(section) for section in self._sections],
        }


class Choices(ViewDirective):
    """Numbered options printed under the console reply."""

    platform = "console"
    key = "consoleChoices"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        console = require_reply(reply, ConsoleReply, self.key)
        options = await self.resolve(event)
        if not isinstance(options, list) or not options:
            raise DirectiveError(self.key, "expected a non-empty list of options")
        console.add_section("choices", [str(option) for option in options])
